# classvideo/auth.py
import secrets
import threading
import logging
from datetime import datetime, timedelta

from passlib.context import CryptContext

from classvideo.config import RESET_TOKEN_TTL_MINUTES

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 비밀번호 재설정 토큰 (token -> (email, 만료 시각))
_reset_tokens = {}
_tokens_lock = threading.Lock()


def hash_password(password):
    return pwd_context.hash(password)


def verify_password(password, password_hash):
    """비밀번호 검증 (해시 형식이 잘못되면 False)"""
    if not password or not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        logger.warning("저장된 비밀번호 해시 형식이 올바르지 않습니다.")
        return False


def generate_reset_token():
    return secrets.token_hex(20)


def store_reset_token(email, token, ttl_minutes=None):
    """재설정 토큰 저장"""
    ttl = RESET_TOKEN_TTL_MINUTES if ttl_minutes is None else ttl_minutes
    expires_at = datetime.utcnow() + timedelta(minutes=ttl)
    with _tokens_lock:
        _reset_tokens[token] = (email, expires_at)
    return expires_at


def validate_reset_token(token):
    """유효한 토큰이면 이메일, 아니면 None"""
    with _tokens_lock:
        entry = _reset_tokens.get(token)
        if entry is None:
            return None
        email, expires_at = entry
        if datetime.utcnow() >= expires_at:
            del _reset_tokens[token]
            return None
        return email


def delete_reset_token(token):
    with _tokens_lock:
        _reset_tokens.pop(token, None)


def purge_expired_tokens():
    """만료된 재설정 토큰 정리"""
    now = datetime.utcnow()
    with _tokens_lock:
        expired = [token for token, (_, expires_at) in _reset_tokens.items() if now >= expires_at]
        for token in expired:
            del _reset_tokens[token]
    if expired:
        logger.info(f"만료된 재설정 토큰 {len(expired)}개 삭제")
    return len(expired)
