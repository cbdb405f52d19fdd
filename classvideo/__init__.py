# classvideo/__init__.py
"""
Classvideo Backend Package

학교 단위 영상 공유 서비스의 백엔드 기능을 제공합니다.
모든 데이터는 S3 버킷 하나에 JSON 객체로 저장됩니다.

주요 모듈:
- config: 설정 관리
- errors: 예외 정의
- storage: S3 버킷 래퍼 (get/put/list/delete/head, presigned URL)
- licenses: 라이선스 키 검증
- locks: 키 단위 프로세스 내 잠금
- users: 사용자 저장소
- videos: 비디오 저장소
- auth: 비밀번호 해시 및 재설정 토큰
- scheduler: 백그라운드 작업 스케줄링
- app: Flask 앱 (헬스체크, 시작 시 스토리지 확인)
"""

# 패키지 정보
__version__ = "1.0.0"
__description__ = "School Video Sharing Backend"
