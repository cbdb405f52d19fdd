import os

# moto가 가로채기 전에 실제 자격 증명이 사용되지 않도록 설정
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('AWS_SECURITY_TOKEN', 'testing')
os.environ.setdefault('AWS_SESSION_TOKEN', 'testing')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

import boto3
from botocore.config import Config
import pytest
from moto import mock_aws

from classvideo import auth
from classvideo.storage import BlobStore, set_store

BUCKET = 'classvideo-test'


@pytest.fixture
def s3_client():
    with mock_aws():
        client = boto3.client(
            's3', region_name='us-east-1', config=Config(signature_version='s3v4')
        )
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def store(s3_client):
    blob_store = BlobStore(s3_client, BUCKET)
    set_store(blob_store)
    yield blob_store
    set_store(None)


@pytest.fixture
def broken_store(s3_client):
    """존재하지 않는 버킷을 가리키는 저장소"""
    return BlobStore(s3_client, 'no-such-bucket')


@pytest.fixture(autouse=True)
def clear_reset_tokens():
    auth._reset_tokens.clear()
    yield
    auth._reset_tokens.clear()
