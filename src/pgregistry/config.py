from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    cors_origins: list[str] = []
    imagekit_public_key: str | None = None
    imagekit_private_key: str | None = None
    imagekit_url_endpoint: str | None = None  # e.g. https://ik.imagekit.io/your_id, base for relative file paths
    imagekit_api_url: str = "https://api.imagekit.io/v1"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "PGREGISTRY_",
        "extra": "ignore",
    }

    @property
    def imagekit_configured(self) -> bool:
        return bool(self.imagekit_public_key and self.imagekit_private_key and self.imagekit_url_endpoint)
