"""
Application configuration loader and it handles:
- Environment variables
- Model credentials and model names
- Image search credentials
- Identity provider settings
- Upload limits and timeouts

And, the main purpose:
Central place for system configuration. Each optional capability
(live model, stock photos, identity provider) is switched on only by the
presence of its credential.
"""


from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # LLM (Gemini REST)
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    PLAN_MODEL: str = "gemini-2.0-flash-exp"
    IMAGE_MODEL: str = "imagen-3.0-generate-001"
    ENABLE_GENERATIVE_IMAGES: bool = True

    # Stock photos (Pexels)
    PEXELS_API_KEY: str = ""
    PEXELS_BASE_URL: str = "https://api.pexels.com/v1"

    # Identity provider (Auth0)
    AUTH0_DOMAIN: str = ""
    AUTH0_CLIENT_ID: str = ""

    # Limits
    MAX_PHOTO_BYTES: int = 4 * 1024 * 1024
    MIN_DESCRIPTION_CHARS: int = 10
    PLAN_TIMEOUT_SECONDS: float = 60.0
    IMAGE_TIMEOUT_SECONDS: float = 8.0

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def model_ready(self) -> bool:
        return bool(self.GEMINI_API_KEY.strip())

    @property
    def image_search_ready(self) -> bool:
        return bool(self.PEXELS_API_KEY.strip())

    @property
    def auth_configured(self) -> bool:
        return bool(self.AUTH0_DOMAIN.strip() and self.AUTH0_CLIENT_ID.strip())

settings = Settings()
