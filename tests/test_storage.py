import pytest

from classvideo.errors import KeyNotFound, StoreUnavailable


def test_put_and_get_json(store):
    store.put_json('users/a@b.com.json', {'email': 'a@b.com'})
    assert store.get_json('users/a@b.com.json') == {'email': 'a@b.com'}
    body, content_type = store.get_object('users/a@b.com.json')
    assert content_type == 'application/json'
    assert b'a@b.com' in body


def test_get_missing_object(store):
    with pytest.raises(KeyNotFound):
        store.get_object('users/missing.json')


def test_head_and_exists(store):
    assert store.head_object('videos/x.mp4') is None
    assert not store.exists('videos/x.mp4')
    store.upload_payload('videos/x.mp4', b'data', 'video/mp4')
    assert store.exists('videos/x.mp4')
    assert store.head_object('videos/x.mp4')['ContentType'] == 'video/mp4'


def test_list_keys_in_order(store):
    for name in ('c', 'a', 'b'):
        store.put_json(f"users/{name}.json", {})
    store.put_json('videos/other.json', {})
    assert store.list_keys('users/') == ['users/a.json', 'users/b.json', 'users/c.json']
    assert store.list_keys('nothing/') == []


def test_delete_object(store):
    store.put_json('users/a.json', {})
    store.delete_object('users/a.json')
    assert not store.exists('users/a.json')


def test_head_bucket(store, broken_store):
    assert store.head_bucket() is True
    with pytest.raises(StoreUnavailable):
        broken_store.head_bucket()


def test_presigned_url(store):
    url = store.generate_presigned_url('videos/Lab1.mp4', expires_in=3600, content_type='video/mp4')
    assert url.startswith('https://')
    assert 'Lab1.mp4' in url
