from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from pgregistry.core.db import MongoModel
from pgregistry.core.modules.resident.display_id import resolve_display_id
from pgregistry.utils import now


class DocumentCategory(StrEnum):
    """Kinds of documents a resident can have on file."""

    IDENTITY_PROOF = "aadhar"
    TAX_ID = "pan"
    INSTITUTION_ID = "college_id"
    OTHER = "other"


class Address(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    pin: str | None = None


class Guardian(BaseModel):
    name: str | None = None
    phone: str | None = None
    relation: str | None = None


class StoredFile(BaseModel):
    """Reference to a file held by ImageKit (or a browser-local placeholder)."""

    url: str = ""
    file_id: str | None = None  # ImageKit fileId, or local_* when uploads were not configured
    name: str | None = None


class ProfileImage(StoredFile):
    optimized_url: str | None = None  # Derived on read, see storage.utils.make_optimized_url


class ResidentDocument(StoredFile):
    category: DocumentCategory = DocumentCategory.OTHER
    uploaded_at: datetime = Field(default_factory=now)


class Resident(MongoModel):
    """Paying-guest resident record."""

    serial: int | None = None  # Assigned once at creation, absent on legacy records
    name: str
    phone: str | None = None
    room: str
    college: str | None = None
    section: str | None = None
    temp_address: Address | None = None
    perm_address: Address | None = None
    guardian: Guardian | None = None
    join_date: datetime = Field(default_factory=now)
    fee_due: float = 0
    notes: str | None = None
    fees_paid: bool = False
    profile_image: ProfileImage | None = None
    documents: list[ResidentDocument] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None

    def get_display_id(self) -> str:
        """Resolve the display id, never from a stored label."""
        return resolve_display_id(self.serial, self.id)

    def file_ids(self) -> list[str]:
        """Collect ImageKit file ids owned by this record, profile image first."""
        files: list[StoredFile] = []
        if self.profile_image is not None:
            files.append(self.profile_image)
        files.extend(self.documents)
        return [f.file_id for f in files if f.file_id]


class ResidentView(Resident):
    """Resident as returned by the API, with the resolved display id."""

    display_id: str = Field(..., description="Human-facing id, e.g. SMA-00042")

    @classmethod
    def from_domain(cls, resident: Resident) -> "ResidentView":
        """Create view model from domain model."""
        return cls(**resident.model_dump(), display_id=resident.get_display_id())
