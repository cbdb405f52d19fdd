# classvideo/app.py (메인 애플리케이션)
import os
import sys
import logging
from datetime import datetime

from flask import Flask

from classvideo import __version__
from classvideo.config import SECRET_KEY
from classvideo.errors import StoreUnavailable
from classvideo.scheduler import scheduler, start_scheduler
from classvideo.storage import get_store

logger = logging.getLogger(__name__)


def configure_logging():
    """로깅 설정"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def verify_storage_connection(store=None):
    """S3 버킷 연결 확인 (실패 시 StoreUnavailable)"""
    store = store or get_store()
    return store.head_bucket()


def create_app(store=None):
    """Flask 앱 생성"""
    app = Flask(__name__)
    app.secret_key = SECRET_KEY
    app.config['BLOB_STORE'] = store

    @app.route('/health', methods=['GET'])
    def health_check():
        """서비스 상태 확인"""
        try:
            verify_storage_connection(app.config['BLOB_STORE'])
            s3_status = 'healthy'
        except StoreUnavailable:
            s3_status = 'unhealthy'

        return {
            'status': s3_status,
            'timestamp': datetime.utcnow().isoformat(),
            'services': {
                's3': s3_status,
                'scheduler': scheduler.running
            },
            'version': __version__
        }, 200 if s3_status == 'healthy' else 503

    return app


def main():
    configure_logging()

    # 스토리지 연결 실패는 치명적
    try:
        verify_storage_connection()
    except StoreUnavailable as e:
        logger.error(f"❌ 시작 실패: {e}")
        sys.exit(1)

    start_scheduler()

    app = create_app()
    port = int(os.environ.get("PORT", 4000))
    app.run(host="0.0.0.0", port=port, debug=bool(os.environ.get('FLASK_DEBUG')))


if __name__ == "__main__":
    main()
