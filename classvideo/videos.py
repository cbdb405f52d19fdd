# classvideo/videos.py
import logging
from concurrent.futures import ThreadPoolExecutor

from classvideo.config import (
    VIDEOS_PREFIX, METADATA_EXTENSION, PAYLOAD_EXTENSION, SIGNED_URL_EXPIRES,
    DEFAULT_VIDEO_MIME_TYPE, LIST_WORKERS, LISTING_MODE, LISTING_MODES
)
from classvideo.errors import (
    DuplicateVideo, KeyNotFound, OperationFailed, UploadFailed, VideoNotFound
)
from classvideo.locks import hold
from classvideo.storage import get_store

logger = logging.getLogger(__name__)

REQUIRED_UPLOAD_FIELDS = ('title', 'classCode', 'userEmail', 'schoolName', 'buffer')


# ===================================================================
# 키 구조
# videos/<schoolName>/<classCode>/<userEmail>/<title>.json  (메타데이터)
# videos/<schoolName>/<classCode>/<userEmail>/<title>.mp4   (페이로드)
# ===================================================================
def video_base_key(school_name, class_code, user_email, title):
    return f"{VIDEOS_PREFIX}{school_name}/{class_code}/{user_email}/{title}"


def metadata_key(school_name, class_code, user_email, title):
    return video_base_key(school_name, class_code, user_email, title) + METADATA_EXTENSION


def payload_key(school_name, class_code, user_email, title):
    return video_base_key(school_name, class_code, user_email, title) + PAYLOAD_EXTENSION


def split_video_key(key):
    """비디오 키를 (기본 키, 확장자)로 분리"""
    for ext in (METADATA_EXTENSION, PAYLOAD_EXTENSION):
        if key.endswith(ext):
            return key[:-len(ext)], ext
    return key, ''


def parse_video_key(key):
    """키에서 학교/반/소유자/파일명 추출 (형식이 다르면 None)"""
    if not key.startswith(VIDEOS_PREFIX):
        return None
    parts = key[len(VIDEOS_PREFIX):].split('/', 3)
    if len(parts) != 4:
        return None
    school_name, class_code, user_email, name = parts
    return {
        'schoolName': school_name,
        'classCode': class_code,
        'userEmail': user_email,
        'name': name
    }


def owned_by(key, user_email):
    parsed = parse_video_key(key)
    return parsed is not None and parsed['userEmail'] == user_email


def listing_prefixes(user_email, account_type=None, school_name=None, class_codes=None):
    """
    계정 유형별 목록 조회 prefix.

    교사는 학교 전체, 학생은 자신의 반별 경로만 조회합니다.
    학교를 모르면 videos/ 전체에서 소유자 기준으로 거릅니다.
    """
    if not school_name:
        return [VIDEOS_PREFIX]
    if account_type == 'teacher':
        return [f"{VIDEOS_PREFIX}{school_name}/"]
    if class_codes:
        prefixes = []
        for code in class_codes:
            prefix = f"{VIDEOS_PREFIX}{school_name}/{code}/{user_email}/"
            if prefix not in prefixes:
                prefixes.append(prefix)
        return prefixes
    return [f"{VIDEOS_PREFIX}{school_name}/"]


def _resolve_mode(mode):
    mode = (mode or LISTING_MODE).lower()
    if mode not in LISTING_MODES:
        raise ValueError(f"지원하지 않는 목록 모드입니다: {mode}")
    return mode


# ===================================================================
# 목록 조회
# ===================================================================
def _load_listed_video(store, key, account_type, school_name, class_codes):
    """메타데이터 한 건 처리 (목록에 포함할 수 없으면 None)"""
    try:
        video = store.get_json(key)
    except KeyNotFound:
        return None
    except ValueError as e:
        logger.warning(f"메타데이터 파싱 실패, 건너뜀 ({key}): {e}")
        return None

    if not isinstance(video, dict):
        return None

    if account_type == 'teacher':
        if video.get('schoolName') != school_name:
            return None
        if video.get('classCode') not in (class_codes or []):
            return None

    video_key = video.get('videoPath') or split_video_key(key)[0] + PAYLOAD_EXTENSION

    # 메타데이터와 페이로드가 모두 있어야 유효한 비디오
    if not store.exists(key) or not store.exists(video_key):
        logger.info(f"불완전한 비디오 건너뜀: {key}")
        return None

    mime_type = video.get('contentType') or DEFAULT_VIDEO_MIME_TYPE
    result = dict(video)
    result['videoUrl'] = store.generate_presigned_url(
        video_key, expires_in=SIGNED_URL_EXPIRES, content_type=mime_type
    )
    result['videoKey'] = video_key
    result['mimeType'] = mime_type
    return result


def list_videos(user_email, account_type=None, school_name=None, class_codes=None,
                mode=None, store=None):
    """
    사용자가 볼 수 있는 비디오 목록 조회.

    lenient 모드에서는 어떤 오류가 나도 빈 목록을 반환하고,
    strict 모드에서는 OperationFailed를 발생시킵니다.
    """
    mode = _resolve_mode(mode)
    store = store or get_store()

    try:
        keys = []
        seen = set()
        for prefix in listing_prefixes(user_email, account_type, school_name, class_codes):
            for key in store.list_keys(prefix):
                if not key.endswith(METADATA_EXTENSION) or key in seen:
                    continue
                if account_type != 'teacher' and not owned_by(key, user_email):
                    continue
                seen.add(key)
                keys.append(key)

        if not keys:
            return []

        def load(key):
            try:
                return _load_listed_video(store, key, account_type, school_name, class_codes)
            except Exception as e:
                if mode == 'strict':
                    raise
                logger.error(f"❌ 비디오 처리 실패, 건너뜀 ({key}): {e}")
                return None

        with ThreadPoolExecutor(max_workers=LIST_WORKERS) as executor:
            results = list(executor.map(load, keys))

        return [video for video in results if video is not None]

    except Exception as e:
        logger.error(f"❌ 비디오 목록 조회 실패 ({user_email}): {e}")
        if mode == 'strict':
            raise OperationFailed('list_videos', e) from e
        return []


# ===================================================================
# 업로드
# ===================================================================
def find_duplicate(videos, title, class_code):
    """제목과 반 코드가 같은 비디오 검색"""
    for video in videos:
        if video.get('title') == title and video.get('classCode') == class_code:
            return video
    return None


def ensure_not_duplicate(user_email, title, class_code, school_name=None, store=None):
    """같은 제목/반 코드의 비디오가 이미 있으면 DuplicateVideo"""
    videos = list_videos(
        user_email, 'student', school_name, [class_code], mode='strict', store=store
    )
    if find_duplicate(videos, title, class_code):
        raise DuplicateVideo('같은 제목과 반 코드의 비디오가 이미 존재합니다.')


def upload_video(video_data, check_duplicate=True, store=None):
    """
    비디오 업로드.

    페이로드를 먼저 쓰고 메타데이터를 마지막에 씁니다. 메타데이터가 있어야
    목록에 나타나므로 중간에 실패하면 비디오는 없는 것으로 취급됩니다.
    """
    store = store or get_store()

    missing = [
        field for field in REQUIRED_UPLOAD_FIELDS
        if field != 'buffer' and not video_data.get(field)
    ]
    # 빈 페이로드(b'')는 허용
    if video_data.get('buffer') is None:
        missing.append('buffer')
    if missing:
        raise UploadFailed(f"필수 항목 누락: {', '.join(missing)}")

    base_key = video_base_key(
        video_data['schoolName'], video_data['classCode'], video_data['userEmail'], video_data['title']
    )
    # 중복 확인부터 메타데이터 기록까지 같은 비디오 경로 단위로 직렬화
    with hold(('video', base_key)):
        return _write_video(video_data, check_duplicate, store)


def _write_video(video_data, check_duplicate, store):
    title = video_data['title']
    class_code = video_data['classCode']
    user_email = video_data['userEmail']
    school_name = video_data['schoolName']

    if check_duplicate:
        ensure_not_duplicate(user_email, title, class_code, school_name, store=store)

    content_type = (
        video_data.get('mimetype') or video_data.get('contentType') or DEFAULT_VIDEO_MIME_TYPE
    )
    video_key = payload_key(school_name, class_code, user_email, title)
    meta_key = metadata_key(school_name, class_code, user_email, title)

    metadata = {
        'title': title,
        'subject': video_data.get('subject'),
        'userEmail': user_email,
        'classCode': class_code,
        'accountType': video_data.get('accountType'),
        'schoolName': school_name,
        'contentType': content_type,
        'viewed': False,
        'videoPath': video_key,
        'studentName': video_data.get('studentName')
    }

    try:
        logger.info(f"비디오 업로드 시작: {video_key}")
        store.upload_payload(video_key, video_data['buffer'], content_type)
        store.put_json(meta_key, metadata)
    except Exception as e:
        logger.error(f"❌ 비디오 업로드 실패 ({video_key}): {e}")
        raise UploadFailed(f"비디오 업로드 실패: {e}") from e

    logger.info(f"✅ 비디오 업로드 완료: {video_key}")
    return {
        'fileId': video_key,
        'filename': video_key,
        'metadata': metadata
    }


# ===================================================================
# 삭제 / 시청 처리
# ===================================================================
def delete_video(video_key, store=None):
    """비디오 페이로드와 메타데이터 삭제 (둘 중 어느 키든 가능)"""
    store = store or get_store()
    base, _ = split_video_key(video_key)
    meta_key = base + METADATA_EXTENSION
    video_path = base + PAYLOAD_EXTENSION

    try:
        meta_exists = store.exists(meta_key)
        if meta_exists:
            try:
                video_path = store.get_json(meta_key).get('videoPath') or video_path
            except (KeyNotFound, ValueError, AttributeError):
                pass
        if not meta_exists and not store.exists(video_path):
            raise VideoNotFound(f"비디오를 찾을 수 없습니다: {video_key}")

        store.delete_object(video_path)
        store.delete_object(meta_key)
    except VideoNotFound:
        raise
    except Exception as e:
        logger.error(f"❌ 비디오 삭제 실패 ({video_key}): {e}")
        raise OperationFailed('delete_video', e) from e

    logger.info(f"비디오 삭제 완료: {video_path}")
    return {'deleted': True, 'videoKey': video_path}


def mark_viewed(video_key, store=None):
    """비디오 메타데이터의 viewed 플래그 설정"""
    store = store or get_store()
    meta_key = split_video_key(video_key)[0] + METADATA_EXTENSION

    try:
        video = store.get_json(meta_key)
    except KeyNotFound as e:
        raise VideoNotFound(f"비디오를 찾을 수 없습니다: {video_key}") from e
    except ValueError as e:
        raise OperationFailed('mark_viewed', e) from e

    video['viewed'] = True
    try:
        store.put_json(meta_key, video)
    except Exception as e:
        logger.error(f"❌ 시청 처리 실패 ({video_key}): {e}")
        raise OperationFailed('mark_viewed', e) from e
    return video


def delete_videos_for_user(user_email, school_name=None, store=None):
    """사용자 소유 비디오 전체 삭제 (실패한 항목은 로그만 남김)"""
    store = store or get_store()
    prefix = f"{VIDEOS_PREFIX}{school_name}/" if school_name else VIDEOS_PREFIX

    try:
        keys = [key for key in store.list_keys(prefix) if owned_by(key, user_email)]
    except Exception as e:
        logger.error(f"❌ 사용자 비디오 목록 조회 실패 ({user_email}): {e}")
        return 0

    failed = set()
    bases = []
    for key in keys:
        base = split_video_key(key)[0]
        if base not in bases:
            bases.append(base)
        try:
            store.delete_object(key)
        except Exception as e:
            failed.add(base)
            logger.error(f"❌ 비디오 객체 삭제 실패 ({key}): {e}")

    deleted = len([base for base in bases if base not in failed])
    logger.info(f"사용자 비디오 삭제: {user_email} ({deleted}/{len(bases)})")
    return deleted
