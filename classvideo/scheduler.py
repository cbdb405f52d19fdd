# classvideo/scheduler.py
import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from classvideo.auth import purge_expired_tokens
from classvideo.config import RESET_TOKEN_PURGE_MINUTES

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(
    timezone='UTC',
    job_defaults={
        'coalesce': True,
        'max_instances': 1
    }
)


def purge_reset_tokens_job():
    """만료된 비밀번호 재설정 토큰 정리 작업"""
    try:
        purge_expired_tokens()
    except Exception as e:
        logger.error(f"❌ 재설정 토큰 정리 실패: {e}")


def register_jobs(target=None):
    """스케줄러에 백그라운드 작업 등록"""
    target = target or scheduler
    target.add_job(
        func=purge_reset_tokens_job,
        trigger=IntervalTrigger(minutes=RESET_TOKEN_PURGE_MINUTES),
        id='purge_reset_tokens',
        name='재설정 토큰 정리',
        replace_existing=True
    )
    return target


def start_scheduler():
    """스케줄러 시작"""
    if scheduler.running:
        return scheduler
    try:
        register_jobs()
        scheduler.start()
        logger.info("🚀 백그라운드 스케줄러가 시작되었습니다.")

        # 앱 종료 시 스케줄러도 함께 종료
        atexit.register(lambda: scheduler.shutdown(wait=False) if scheduler.running else None)
    except Exception as e:
        logger.error(f"❌ 스케줄러 시작 실패: {e}")
    return scheduler
