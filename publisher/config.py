# publisher/config.py
import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

CATEGORY_DELETE_POLICIES = ('restrict', 'cascade', 'keep')

# Prometheus Metrics Configuration
REQUEST_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.075,
    0.1,
    0.25,
    0.5,
    0.75,
    1.0,
    2.5,
    5.0,
    10.0,
)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes', 'on')


@dataclass
class ServerConfig:
    """uvicorn 실행 및 CORS 설정"""
    host: str = field(default_factory=lambda: os.getenv('HOST', '0.0.0.0'))
    port: int = field(default_factory=lambda: int(os.getenv('PORT', '8005')))
    log_level: str = field(default_factory=lambda: os.getenv('LOG_LEVEL', 'INFO').upper())
    allowed_origins: List[str] = field(
        default_factory=lambda: os.getenv('ALLOWED_ORIGINS', '*').split(',')
    )


@dataclass
class AuthConfig:
    """인증 관련 설정"""
    jwt_secret: str = field(default_factory=lambda: os.getenv('JWT_SECRET', ''))
    jwt_algorithm: str = 'HS256'
    token_ttl_seconds: int = field(default_factory=lambda: int(os.getenv('TOKEN_TTL_SECONDS', '86400')))
    login_rate_limit: str = field(default_factory=lambda: os.getenv('LOGIN_RATE_LIMIT', '5/minute'))
    demo_admin_username: str = field(default_factory=lambda: os.getenv('DEMO_ADMIN_USERNAME', 'admin'))
    demo_admin_password: Optional[str] = field(default_factory=lambda: os.getenv('DEMO_ADMIN_PASSWORD') or None)

    def __post_init__(self):
        if not self.jwt_secret:
            logger.warning("JWT_SECRET is not set; using an insecure development secret.")
            self.jwt_secret = 'dev-insecure-secret-change-me-in-production'


@dataclass
class ListingConfig:
    default_page_size: int = field(default_factory=lambda: int(os.getenv('DEFAULT_PAGE_SIZE', '10')))
    max_page_size: int = field(default_factory=lambda: int(os.getenv('MAX_PAGE_SIZE', '100')))


@dataclass
class StorageConfig:
    """In-memory store, demo data and upload settings"""
    seed_demo_data: bool = field(default_factory=lambda: _env_bool('SEED_DEMO_DATA', 'true'))
    category_delete_policy: str = field(
        default_factory=lambda: os.getenv('CATEGORY_DELETE_POLICY', 'restrict').lower()
    )
    upload_dir: str = field(default_factory=lambda: os.getenv('UPLOAD_DIR', 'public/uploads'))
    upload_url_prefix: str = '/uploads'
    max_upload_bytes: int = field(default_factory=lambda: int(os.getenv('MAX_UPLOAD_BYTES', str(5 * 1024 * 1024))))

    def __post_init__(self):
        if self.category_delete_policy not in CATEGORY_DELETE_POLICIES:
            raise ValueError(
                f"CATEGORY_DELETE_POLICY must be one of {', '.join(CATEGORY_DELETE_POLICIES)}, "
                f"got '{self.category_delete_policy}'."
            )


class Config:
    def __init__(self):
        self.server = ServerConfig()
        self.auth = AuthConfig()
        self.listing = ListingConfig()
        self.storage = StorageConfig()


# 다른 파일에서 쉽게 임포트할 수 있도록 전역 인스턴스 생성
config = Config()
