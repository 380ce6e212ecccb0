from uuid import UUID

from pydantic import BaseModel, Field

from pgregistry.core.modules.resident.models import ProfileImage


class UploadAuthParameters(BaseModel):
    """Signed parameters a browser needs for a direct ImageKit upload."""

    token: str = Field(..., description="One-time upload token")
    expire: int = Field(..., description="Unix timestamp after which the signature is rejected")
    signature: str = Field(..., description="HMAC-SHA1 of token + expire with the private key")
    public_key: str = Field(..., description="ImageKit public key")
    url_endpoint: str = Field(..., description="ImageKit URL endpoint")


class PlaceholderImage(BaseModel):
    """Resident whose stored profile image is a browser-local placeholder."""

    id: UUID
    name: str
    profile_image: ProfileImage | None


class PlaceholderImageReport(BaseModel):
    count: int
    items: list[PlaceholderImage]
