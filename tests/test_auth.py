from classvideo.auth import (
    delete_reset_token, generate_reset_token, hash_password, purge_expired_tokens,
    store_reset_token, validate_reset_token, verify_password
)


def test_hash_and_verify():
    hashed = hash_password('s3cret!')
    assert hashed != 's3cret!'
    assert verify_password('s3cret!', hashed)
    assert not verify_password('wrong', hashed)


def test_verify_rejects_bad_hash():
    assert not verify_password('s3cret!', 'plain-text')
    assert not verify_password('s3cret!', None)


def test_reset_token_lifecycle():
    token = generate_reset_token()
    assert len(token) == 40
    store_reset_token('a@b.com', token)
    assert validate_reset_token(token) == 'a@b.com'
    delete_reset_token(token)
    assert validate_reset_token(token) is None


def test_expired_token():
    token = generate_reset_token()
    store_reset_token('a@b.com', token, ttl_minutes=-1)
    assert validate_reset_token(token) is None


def test_purge_expired_tokens():
    store_reset_token('old@b.com', 'old-token', ttl_minutes=-5)
    store_reset_token('new@b.com', 'new-token')
    assert purge_expired_tokens() == 1
    assert validate_reset_token('new-token') == 'new@b.com'
    assert purge_expired_tokens() == 0
