from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"
VISION_TIMEOUT_SECONDS = 30.0
MAX_PAYLOAD_BYTES = 10 * 1024 * 1024

# Values shipped in sample .env files; treated the same as "no key".
PLACEHOLDER_API_KEYS = {
    "paste_your_api_key_here",
    "your_api_key_here",
    "your-google-vision-api-key",
    "changeme",
}


class Settings(BaseSettings):
    google_vision_api_key: str = ""
    vision_api_url: str = VISION_API_URL
    vision_timeout_seconds: float = VISION_TIMEOUT_SECONDS
    max_payload_bytes: int = MAX_PAYLOAD_BYTES

    # demo mode
    mock_delay_seconds: float = 3.0

    preprocess_images: bool = False
    log_level: str = "INFO"

    @property
    def has_live_credential(self) -> bool:
        key = (self.google_vision_api_key or "").strip()
        if not key:
            return False
        return key.lower() not in PLACEHOLDER_API_KEYS

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
