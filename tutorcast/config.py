"""Configuration loaded from environment (.env) and defaults."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Locate the project root .env file so it works regardless of CWD
_THIS_DIR = Path(__file__).resolve().parent          # tutorcast/
_PROJECT_ROOT = _THIS_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DEFAULT_PRESENTER_ID = "v2_public_anita@Os4oKCBIgZ"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Render provider (D-ID clips API)
    did_api_key: str | None = None
    did_api_url: str = "https://api.d-id.com"

    # AWS S3
    aws_region: str = "ap-south-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_bucket_name: str | None = None
    s3_folder_path: str = "subtopics/ai_videourl/"

    # MongoDB
    mongo_uri: str | None = None
    default_dbname: str = "professional"

    # Optional system-of-record service that owns subtopic writes.
    # Unset disables the front-door update entirely.
    system_of_record_url: str | None = None

    # Render polling budget: 60 polls x 3 s ~ 3 minutes
    render_poll_interval: float = 3.0
    render_max_polls: int = 60

    # Terminal jobs are purged on the first status query after this window
    job_retention_seconds: int = 3600

    # Background pipeline worker pool
    tutorcast_max_workers: int = 8

    default_presenter_id: str = DEFAULT_PRESENTER_ID

    # CORS origins (comma-separated). Defaults to localhost dev.
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://localhost:5174"
    # Optional regex to allow origins (e.g. https://.*\.netlify\.app)
    cors_origin_regex: str | None = None

    # Server port
    port: int = 8000

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing_required(self) -> list[str]:
        """Names of required environment variables that are not set."""
        required = {
            "DID_API_KEY": self.did_api_key,
            "S3_BUCKET_NAME": self.s3_bucket_name,
            "MONGO_URI": self.mongo_uri,
        }
        return [name for name, value in required.items() if not value]


def get_settings() -> Settings:
    return Settings()
