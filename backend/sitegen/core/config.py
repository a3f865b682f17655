from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Website Pipeline"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    API_V1_STR: str = ""

    # LLM provider (any OpenAI-compatible endpoint; Gemini by default)
    LLM_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    LLM_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    MODEL_DEFAULT: str = "gemini-2.0-flash"
    MODEL_ARCHITECT: str = ""
    MODEL_BUILDER: str = ""
    LLM_TEMPERATURE: float = 0.4

    # Object storage (S3 API; Supabase storage exposes a compatible gateway)
    STORAGE_BUCKET: str = "websites"
    STORAGE_ENDPOINT_URL: str = ""
    STORAGE_REGION: str = "us-east-1"
    STORAGE_ACCESS_KEY_ID: str = ""
    STORAGE_SECRET_ACCESS_KEY: str = ""
    STORAGE_PUBLIC_BASE_URL: str = ""
    STORAGE_CACHE_CONTROL: str = "public, max-age=3600"

    BUCKET_PUBLISHED: str = "wb-site-published"
    BUCKET_SNAPSHOTS: str = "wb-site-snapshots"
    BUCKET_ASSETS: str = "wb-site-assets"

    # Local handoff layout
    OUTPUT_ROOT: str = "output"
    TASKS_ROOT: str = "tasks"

    # Fail the builder stage when the markup has no DOCTYPE (default: warn only)
    REQUIRE_DOCTYPE: bool = False

    WATCH_POLL_INTERVAL_SECONDS: float = 2.0
    # Task files modified more recently than this are assumed to be still being written.
    WATCH_STABILITY_SECONDS: float = 0.5

    DATABASE_URL: str = "sqlite:///./sitegen.db"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def llm_api_key(self) -> str:
        return self.LLM_API_KEY or self.GEMINI_API_KEY or self.OPENAI_API_KEY

    @computed_field  # type: ignore[prop-decorator]
    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def storage_configured(self) -> bool:
        return bool(
            self.STORAGE_BUCKET
            and self.STORAGE_ACCESS_KEY_ID
            and self.STORAGE_SECRET_ACCESS_KEY
        )

    def public_storage_base_url(self, bucket: str | None = None) -> str:
        bucket_name = bucket or self.STORAGE_BUCKET
        if self.STORAGE_PUBLIC_BASE_URL:
            return f"{self.STORAGE_PUBLIC_BASE_URL.rstrip('/')}/{bucket_name}"
        if self.STORAGE_ENDPOINT_URL:
            return f"{self.STORAGE_ENDPOINT_URL.rstrip('/')}/{bucket_name}"
        return f"https://{bucket_name}.s3.{self.STORAGE_REGION}.amazonaws.com"


settings = Settings()  # type: ignore
