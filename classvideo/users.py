# classvideo/users.py
import logging
from concurrent.futures import ThreadPoolExecutor

from botocore.exceptions import BotoCoreError, ClientError

from classvideo.auth import verify_password
from classvideo.config import USERS_PREFIX, METADATA_EXTENSION, LIST_WORKERS
from classvideo.errors import (
    ClassCodeNotFound, DuplicateEmail, InvalidLicenseKey, InvalidSchoolName, KeyNotFound,
    LicenseLimitReached, MalformedRecord, OperationFailed, UserNotFound
)
from classvideo.licenses import (
    count_registered, has_capacity, is_configured, is_valid_license_key_for,
    is_valid_school_name, limit_for
)
from classvideo.locks import hold
from classvideo.storage import get_store
from classvideo.videos import delete_videos_for_user, list_videos

logger = logging.getLogger(__name__)

REQUIRED_USER_FIELDS = ('email', 'firstName', 'accountType')
CLASS_CODE_ACTIONS = ('add', 'delete')

# 스토리지 통신 오류
STORAGE_ERRORS = (ClientError, BotoCoreError)


def user_key(email):
    return f"{USERS_PREFIX}{email}{METADATA_EXTENSION}"


def _load_user(store, key):
    """사용자 레코드 로드 및 필수 필드 검증"""
    try:
        user = store.get_json(key)
    except ValueError as e:
        raise MalformedRecord(key, 'JSON 파싱 실패') from e

    if not isinstance(user, dict):
        raise MalformedRecord(key)
    missing = [field for field in REQUIRED_USER_FIELDS if not user.get(field)]
    if missing:
        raise MalformedRecord(key, f"필수 필드 누락: {', '.join(missing)}")
    return user


def _fetch_user(store, email, operation):
    """레코드가 없거나 형식이 잘못되면 UserNotFound"""
    try:
        return _load_user(store, user_key(email))
    except (KeyNotFound, MalformedRecord) as e:
        raise UserNotFound(f"사용자를 찾을 수 없습니다: {email}") from e
    except STORAGE_ERRORS as e:
        logger.error(f"❌ 사용자 조회 실패 ({email}): {e}")
        raise OperationFailed(operation, e) from e


def list_users(store=None):
    """
    전체 사용자 목록 조회.

    레코드 하나라도 형식이 잘못되면 전체 조회가 MalformedRecord로 실패합니다.
    """
    store = store or get_store()
    try:
        keys = [key for key in store.list_keys(USERS_PREFIX) if key.endswith(METADATA_EXTENSION)]
        if not keys:
            return []
        with ThreadPoolExecutor(max_workers=LIST_WORKERS) as executor:
            return list(executor.map(lambda key: _load_user(store, key), keys))
    except MalformedRecord as e:
        logger.error(f"❌ 사용자 목록 조회 실패: {e}")
        raise
    except (KeyNotFound,) + STORAGE_ERRORS as e:
        logger.error(f"❌ 사용자 목록 조회 실패: {e}")
        raise OperationFailed('list_users', e) from e


def create_user(user_data, store=None):
    """
    사용자 등록.

    학교 이름, 이메일 중복, 라이선스 키 유효성, 키별 등록 한도를 확인한 뒤
    레코드를 저장합니다. 같은 프로세스 안에서는 이메일/라이선스 키 단위로
    직렬화됩니다. 기존 사용자 레코드가 손상되어 한도를 셀 수 없으면
    OperationFailed가 발생합니다.
    """
    store = store or get_store()
    email = user_data.get('email')
    license_key = user_data.get('licenseKey')
    account_type = user_data.get('accountType')

    if not email:
        raise ValueError('이메일이 필요합니다.')
    if not is_valid_school_name(user_data.get('schoolName')):
        raise InvalidSchoolName(f"등록할 수 없는 학교입니다: {user_data.get('schoolName')}")

    with hold(('email', email), ('license', license_key)):
        try:
            if store.exists(user_key(email)):
                raise DuplicateEmail('이미 사용 중인 이메일입니다.')

            users = list_users(store)
            registered = count_registered(users, license_key)

            # 한도가 설정된 키는 계정 유형과 무관하게 한도 초과가 우선
            if is_configured(license_key) and not has_capacity(license_key, registered):
                raise LicenseLimitReached(
                    f"라이선스 키 한도 초과: {license_key} ({registered}/{limit_for(license_key)})"
                )
            if not is_valid_license_key_for(account_type, license_key):
                raise InvalidLicenseKey('선택한 계정 유형에 사용할 수 없는 라이선스 키입니다.')
            if not has_capacity(license_key, registered):
                raise LicenseLimitReached(f"라이선스 키 한도 초과: {license_key}")

            store.put_json(user_key(email), user_data)
        except MalformedRecord as e:
            raise OperationFailed('create_user', e) from e
        except STORAGE_ERRORS as e:
            logger.error(f"❌ 사용자 등록 실패 ({email}): {e}")
            raise OperationFailed('create_user', e) from e

    logger.info(f"✅ 사용자 등록 완료: {email} ({account_type}, {license_key})")
    return user_data


def read_user(email, store=None):
    """사용자 정보와 해당 사용자가 볼 수 있는 비디오 조회"""
    store = store or get_store()
    user = _fetch_user(store, email, 'read_user')
    videos = list_videos(
        user['email'],
        user.get('accountType'),
        user.get('schoolName'),
        user.get('classCodesArray'),
        store=store
    )
    return {'user': user, 'videos': videos}


def update_user(email, changes, action, store=None):
    """반 코드 추가(add) 또는 삭제(delete)"""
    if action not in CLASS_CODE_ACTIONS:
        raise ValueError('Invalid action. Use "add" or "delete".')

    store = store or get_store()
    class_code = changes.get('classCode')

    with hold(('email', email)):
        user = _fetch_user(store, email, 'update_user')
        codes = list(user.get('classCodesArray') or [])

        if action == 'add':
            codes.append(class_code)
        else:
            if class_code not in codes:
                raise ClassCodeNotFound(f"반 코드가 존재하지 않습니다: {class_code}")
            # 마지막으로 추가된 항목 하나만 제거
            del codes[len(codes) - 1 - codes[::-1].index(class_code)]

        user['classCodesArray'] = codes
        try:
            store.put_json(user_key(email), user)
        except STORAGE_ERRORS as e:
            logger.error(f"❌ 반 코드 수정 실패 ({email}): {e}")
            raise OperationFailed('update_user', e) from e

    done = 'added' if action == 'add' else 'deleted'
    logger.info(f"반 코드 {done}: {email} -> {class_code}")
    return {'message': f"Class code {done} successfully!"}


def reset_password(email, hashed_password, store=None):
    """저장된 비밀번호 해시 교체"""
    store = store or get_store()
    with hold(('email', email)):
        user = _fetch_user(store, email, 'reset_password')
        user['password'] = hashed_password
        try:
            store.put_json(user_key(email), user)
        except STORAGE_ERRORS as e:
            logger.error(f"❌ 비밀번호 변경 실패 ({email}): {e}")
            raise OperationFailed('reset_password', e) from e

    logger.info(f"비밀번호 변경 완료: {email}")
    return {'message': 'Password reset successfully!'}


def authenticate(email, password, store=None):
    """이메일/비밀번호 확인 후 사용자 요약과 이동할 페이지 반환 (실패 시 None)"""
    store = store or get_store()
    try:
        user = _fetch_user(store, email, 'authenticate')
    except UserNotFound:
        return None

    if not verify_password(password, user.get('password')):
        return None

    redirect_page = 'teacher-.html' if user['accountType'] == 'teacher' else 'student-.html'
    return {
        'redirectPage': redirect_page,
        'user': {
            'email': user['email'],
            'firstName': user['firstName'],
            'accountType': user['accountType']
        }
    }


def delete_user(email, store=None):
    """
    사용자 레코드 삭제 후 소유 비디오를 모두 삭제.

    비디오 삭제 실패는 로그만 남기며 사용자 삭제를 되돌리지 않습니다.
    """
    store = store or get_store()
    key = user_key(email)

    with hold(('email', email)):
        school_name = None
        try:
            school_name = store.get_json(key).get('schoolName')
        except (KeyNotFound, ValueError, AttributeError):
            # 학교를 모르면 videos/ 전체에서 소유자 기준으로 삭제
            logger.warning(f"사용자 레코드를 읽을 수 없음, 전체 비디오 경로에서 삭제: {email}")
        except STORAGE_ERRORS as e:
            raise OperationFailed('delete_user', e) from e

        try:
            store.delete_object(key)
        except STORAGE_ERRORS as e:
            logger.error(f"❌ 사용자 삭제 실패 ({email}): {e}")
            raise OperationFailed('delete_user', e) from e

        videos_deleted = delete_videos_for_user(email, school_name, store=store)

    logger.info(f"✅ 사용자 삭제 완료: {email} (비디오 {videos_deleted}개)")
    return {'deleted': True, 'videosDeleted': videos_deleted}
