# classvideo/errors.py
"""저장소 계층 예외 정의"""


class StoreError(Exception):
    """모든 저장소 예외의 기본 클래스"""


class StoreUnavailable(StoreError):
    """S3 버킷 연결 실패 (시작 시 치명적)"""


class KeyNotFound(StoreError):
    """요청한 객체가 버킷에 없음"""

    def __init__(self, key):
        super().__init__(f"객체를 찾을 수 없습니다: {key}")
        self.key = key


class DuplicateEmail(StoreError):
    pass


class InvalidLicenseKey(StoreError):
    pass


class LicenseLimitReached(StoreError):
    pass


class MalformedRecord(StoreError):
    """필수 필드가 빠졌거나 JSON 파싱이 불가능한 레코드"""

    def __init__(self, key, reason=''):
        message = f"잘못된 레코드 형식: {key}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.key = key


class UserNotFound(StoreError):
    pass


class ClassCodeNotFound(StoreError):
    pass


class DuplicateVideo(StoreError):
    pass


class VideoNotFound(StoreError):
    pass


class UploadFailed(StoreError):
    pass


class OperationFailed(StoreError):
    """예상치 못한 스토리지 오류를 작업 단위로 감싼 예외"""

    def __init__(self, operation, cause=None):
        message = f"{operation} 실패"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class InvalidSchoolName(StoreError):
    pass
