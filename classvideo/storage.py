# classvideo/storage.py
import io
import json
import logging
import threading

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from classvideo.config import (
    AWS_ACCESS_KEY, AWS_SECRET_KEY, REGION_NAME, BUCKET_NAME, S3_ENDPOINT_URL
)
from classvideo.errors import KeyNotFound, StoreUnavailable

logger = logging.getLogger(__name__)

# 대용량 비디오 업로드용 멀티파트 설정
s3_config = TransferConfig(
    multipart_threshold=1024 * 1024 * 25,
    multipart_chunksize=1024 * 1024 * 50,
    max_concurrency=5,
    use_threads=True
)

_NOT_FOUND_CODES = {'404', 'NoSuchKey', 'NotFound'}


def create_s3_client():
    """S3 클라이언트 생성"""
    return boto3.client(
        's3',
        aws_access_key_id=AWS_ACCESS_KEY,
        aws_secret_access_key=AWS_SECRET_KEY,
        region_name=REGION_NAME,
        endpoint_url=S3_ENDPOINT_URL,
        config=Config(signature_version='s3v4')
    )


def is_not_found(error):
    """ClientError가 객체 없음(404)인지 확인"""
    code = str(error.response.get('Error', {}).get('Code', ''))
    return code in _NOT_FOUND_CODES


class BlobStore:
    """
    단일 버킷을 평면 키-값 저장소로 사용하는 래퍼.

    JSON 레코드와 바이너리 페이로드를 같은 네임스페이스에 저장합니다.
    객체가 없으면 KeyNotFound, 그 외 S3 오류는 그대로 전파합니다.
    """

    def __init__(self, client, bucket):
        self.client = client
        self.bucket = bucket

    def head_bucket(self):
        """버킷 연결 확인"""
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"❌ S3 버킷 연결 실패 ({self.bucket}): {e}")
            raise StoreUnavailable(f"S3 버킷에 연결할 수 없습니다: {self.bucket}") from e
        logger.info(f"✅ S3 버킷 연결 확인: {self.bucket}")
        return True

    def head_object(self, key):
        """객체 메타데이터 조회 (없으면 None)"""
        try:
            return self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise

    def exists(self, key):
        return self.head_object(key) is not None

    def get_object(self, key):
        """객체 본문과 Content-Type 반환"""
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_not_found(e):
                raise KeyNotFound(key) from e
            raise
        body = response['Body'].read()
        return body, response.get('ContentType')

    def get_json(self, key):
        body, _ = self.get_object(key)
        return json.loads(body.decode('utf-8'))

    def put_object(self, key, body, content_type):
        if isinstance(body, str):
            body = body.encode('utf-8')
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type
        )

    def put_json(self, key, data):
        self.put_object(key, json.dumps(data), 'application/json')

    def upload_payload(self, key, body, content_type):
        """바이너리 페이로드 업로드 (멀티파트 지원)"""
        self.client.upload_fileobj(
            io.BytesIO(body),
            self.bucket,
            key,
            ExtraArgs={'ContentType': content_type},
            Config=s3_config
        )

    def list_keys(self, prefix):
        """prefix 아래 모든 키를 목록 순서대로 반환"""
        keys = []
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for item in page.get('Contents', []):
                keys.append(item['Key'])
        return keys

    def delete_object(self, key):
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def generate_presigned_url(self, key, expires_in, content_type=None):
        """S3 객체에 대해 presigned URL 생성"""
        params = {'Bucket': self.bucket, 'Key': key}
        if content_type:
            params['ResponseContentType'] = content_type
        return self.client.generate_presigned_url(
            ClientMethod='get_object',
            Params=params,
            ExpiresIn=expires_in
        )


_store = None
_store_lock = threading.Lock()


def get_store():
    """프로세스 전역 BlobStore 반환 (최초 호출 시 생성)"""
    global _store
    with _store_lock:
        if _store is None:
            _store = BlobStore(create_s3_client(), BUCKET_NAME)
        return _store


def set_store(store):
    """전역 BlobStore 교체 (테스트용)"""
    global _store
    with _store_lock:
        _store = store
