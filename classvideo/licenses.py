# classvideo/licenses.py
from classvideo.config import (
    ACCOUNT_TYPES, LICENSE_KEY_LIMITS, VALID_LICENSE_KEYS, VALID_SCHOOL_NAMES
)


def is_valid_school_name(school_name):
    """등록 가능한 학교인지 확인"""
    return school_name in VALID_SCHOOL_NAMES


def is_valid_license_key_for(account_type, license_key):
    """계정 유형에 사용 가능한 라이선스 키인지 확인"""
    if account_type not in ACCOUNT_TYPES:
        return False
    return license_key in VALID_LICENSE_KEYS.get(account_type, ())


def limit_for(license_key):
    """라이선스 키의 최대 계정 수 (미등록 키는 0)"""
    return LICENSE_KEY_LIMITS.get(license_key, 0)


def is_configured(license_key):
    return license_key in LICENSE_KEY_LIMITS


def count_registered(users, license_key):
    """해당 라이선스 키로 등록된 사용자 수"""
    return sum(1 for user in users if user.get('licenseKey') == license_key)


def has_capacity(license_key, current_count):
    return current_count < limit_for(license_key)
