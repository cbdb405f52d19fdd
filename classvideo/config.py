# classvideo/config.py

import os

# 환경변수 설정
AWS_ACCESS_KEY = os.environ.get('AWS_ACCESS_KEY')
AWS_SECRET_KEY = os.environ.get('AWS_SECRET_KEY')
REGION_NAME = os.environ.get('REGION_NAME', 'us-east-1')
BUCKET_NAME = os.environ.get('BUCKET_NAME', 'aws-testing-prolerus')
# Wasabi 등 S3 호환 스토리지 사용 시 지정
S3_ENDPOINT_URL = os.environ.get('S3_ENDPOINT_URL') or None
SECRET_KEY = os.environ.get('FLASK_SECRET_KEY', 'supersecret')

# 저장소 키 구조
USERS_PREFIX = 'users/'
VIDEOS_PREFIX = 'videos/'
METADATA_EXTENSION = '.json'
PAYLOAD_EXTENSION = '.mp4'

# 비디오 목록 설정
SIGNED_URL_EXPIRES = 3600  # 1시간
DEFAULT_VIDEO_MIME_TYPE = 'video/mp4'
LIST_WORKERS = max(1, int(os.environ.get('LIST_WORKERS', '8')))

# 목록 조회 오류 정책: lenient는 오류 시 빈 목록, strict는 예외
LISTING_MODES = ('lenient', 'strict')
LISTING_MODE = os.environ.get('LISTING_MODE', 'lenient').lower()
if LISTING_MODE not in LISTING_MODES:
    LISTING_MODE = 'lenient'

# 계정 유형
ACCOUNT_TYPES = ('student', 'teacher')

# 등록 가능한 학교
VALID_SCHOOL_NAMES = ['Burnside', 'STAC', 'School C']

# 라이선스 키별 최대 계정 수
LICENSE_KEY_LIMITS = {
    'BurnsideHighSchool': 4,
    'MP003': 8,
    '3399': 20,
    'STUDENT_KEY_1': 10,
    'TEACHER_KEY_2': 10,
}

# 계정 유형별 사용 가능한 라이선스 키
VALID_LICENSE_KEYS = {
    'student': ['STUDENT_KEY_1', 'STUDENT_KEY_2'],
    'teacher': ['TEACHER_KEY_1', 'TEACHER_KEY_2'],
}

# 비밀번호 재설정
RESET_TOKEN_TTL_MINUTES = int(os.environ.get('RESET_TOKEN_TTL_MINUTES', '60'))
RESET_TOKEN_PURGE_MINUTES = 15
