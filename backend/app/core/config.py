import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.paths import resolve_repo_path


def _env_files() -> list[str]:
    base = resolve_repo_path("backend/.env")
    env = os.getenv("SVR_ENVIRONMENT", "").strip().lower()
    files = [str(base)]
    if env and env != "development":
        files.append(str(resolve_repo_path(f"backend/.env.{env}")))
    else:
        files.append(str(resolve_repo_path("backend/.env.local")))
    return files


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip().rstrip("/") for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    app_name: str = "Surveyor Registry"
    environment: str = "development"

    database_url: str
    create_tables_on_startup: bool = False

    jwt_secret: str = ""
    admin_username: str = "admin"
    admin_password_hash: str = ""
    token_ttl_days: int = 7
    short_token_ttl_hours: int = 2
    auth_token_delivery: Literal["body", "cookie", "both"] = "both"
    auth_cookie_name: str = "svr_admin_token"
    auth_cookie_secure: bool = True

    s3_bucket: str = ""
    s3_region: str = ""
    s3_endpoint_url: str = ""
    s3_url_style: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    presign_ttl_seconds: int = 300

    upload_dir: str = "uploads"
    max_upload_mb: int = 10
    strict_phone_validation: bool = False
    list_max_limit: int = 200

    allowed_origins: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174"
    allowed_origin_regex: str = r"https://.*\.vercel\.app"

    model_config = SettingsConfigDict(env_prefix="SVR_", env_file=_env_files(), extra="ignore")

    @property
    def allowed_origins_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


settings = Settings()
