from typing import List, Optional
from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings
from enum import Enum

class BaseConfig(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name":True
    }

class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class CompressionType(str, Enum):
    GZIP = "gz"
    BZIP2 = "bz2"
    ZIP = "zip"

class AuthMode(str, Enum):
    JWT = "jwt"
    NONE = "none"

class SocialStoreType(str, Enum):
    SQL = "sql"
    DYNAMODB = "dynamodb"

class ValidationBackend(str, Enum):
    CELERY = "celery"
    INLINE = "inline"

class AppSettings(BaseSettings):
    app_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        alias="APP_NAME"
    )
    app_port: int = Field(
        ...,
        ge=1,
        le=65535,
        alias="APP_PORT"
    )

    app_host: str = Field(default="0.0.0.0")
    app_reload: bool = Field(default=False)
    app_log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}")
    log_file: str = Field(default="logs/app.log")
    log_rotation: str = Field(default="1 day")
    log_compression: CompressionType = Field(default=CompressionType.GZIP)
    cors_origins: str = Field(default="http://localhost:5173", alias="CORS_ORIGINS")

    model_config = BaseConfig.model_config

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

class DatabaseSettings(BaseSettings):
    postgres_user: str = Field(default="postgres", min_length=1, alias="POSTGRES_USER")
    postgres_password: str = Field(default="postgres", min_length=1, alias="POSTGRES_PASSWORD")
    postgres_db: str = Field(default="edureels", min_length=1, alias="POSTGRES_DB")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, ge=1, le=65535, alias="POSTGRES_PORT")
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")
    debug_sql: bool = Field(default=False, alias="DEBUG_SQL")

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    model_config = BaseConfig.model_config


class RedisSettings(BaseSettings):
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, ge=1, le=65535, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    redis_db: int = Field(default=0, ge=0, alias="REDIS_DB")

    model_config = BaseConfig.model_config

    @property
    def redis_url(self) -> str:
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

class JWTSettings(BaseSettings):
    secret_key: str = Field(..., min_length=32, alias="SECRET_KEY")
    refresh_token_secret_key: str = Field(..., min_length=32, alias="REFRESH_TOKEN_SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_minutes: int = Field(default=60 * 24 * 30, alias="REFRESH_TOKEN_EXPIRE_MINUTES")

    model_config = BaseConfig.model_config

class AuthSettings(BaseSettings):
    auth_mode: AuthMode = Field(default=AuthMode.JWT, alias="AUTH_MODE")
    client_secret: str = Field(..., min_length=16, alias="AUTH_CLIENT_SECRET")
    admin_token: str = Field(..., min_length=16, alias="ADMIN_TOKEN")
    anonymous_user_id: str = Field(default="anonymous", alias="ANONYMOUS_USER_ID")

    model_config = BaseConfig.model_config


class AWSSettings(BaseSettings):
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    aws_endpoint_url: Optional[str] = Field(default=None, alias="AWS_ENDPOINT_URL")
    s3_bucket_name: Optional[str] = Field(default=None, alias="S3_BUCKET_NAME")
    cloudfront_domain: Optional[str] = Field(default=None, alias="CLOUDFRONT_DOMAIN")
    upload_url_expires: int = Field(default=3600, alias="S3_UPLOAD_URL_EXPIRES")

    social_store: SocialStoreType = Field(default=SocialStoreType.SQL, alias="SOCIAL_STORE")
    likes_table: str = Field(default="reels-likes", alias="DYNAMODB_LIKES_TABLE")
    comments_table: str = Field(default="reels-comments", alias="DYNAMODB_COMMENTS_TABLE")

    model_config = BaseConfig.model_config

    @property
    def s3_configured(self) -> bool:
        return bool(self.s3_bucket_name and self.aws_access_key_id and self.aws_secret_access_key)


class DeepgramSettings(BaseSettings):
    deepgram_api_key: Optional[str] = Field(default=None, alias="DEEPGRAM_API_KEY")
    deepgram_model: str = Field(default="nova-2", alias="DEEPGRAM_MODEL")
    deepgram_language: str = Field(default="en", alias="DEEPGRAM_LANGUAGE")
    deepgram_api_url: HttpUrl = Field(default="https://api.deepgram.com/v1/listen", alias="DEEPGRAM_API_URL")
    deepgram_timeout: float = Field(default=120.0, alias="DEEPGRAM_TIMEOUT")

    model_config = BaseConfig.model_config


class GeminiSettings(BaseSettings):
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_api_url: HttpUrl = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_API_URL",
    )
    gemini_timeout: float = Field(default=60.0, alias="GEMINI_TIMEOUT")

    model_config = BaseConfig.model_config


class UploadSettings(BaseSettings):
    max_duration_seconds: int = Field(default=60, ge=1, alias="MAX_DURATION_SECONDS")
    max_file_size_mb: int = Field(default=10, ge=1, alias="MAX_FILE_SIZE_MB")
    allowed_mime_types: List[str] = Field(
        default=[
            "video/mp4",
            "video/avi",
            "video/mov",
            "video/wmv",
            "video/webm",
            "video/quicktime",
        ],
        alias="ALLOWED_MIME_TYPES",
    )
    upload_tmp_dir: str = Field(default="/tmp/edureels-uploads", alias="UPLOAD_TMP_DIR")
    validation_backend: ValidationBackend = Field(default=ValidationBackend.CELERY, alias="VALIDATION_BACKEND")
    validation_timeout: int = Field(default=180, alias="VALIDATION_TIMEOUT")
    ffprobe_path: str = Field(default="ffprobe", alias="FFPROBE_PATH")

    model_config = BaseConfig.model_config

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024
