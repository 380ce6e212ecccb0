"""Pure helpers for ImageKit file references and URLs."""

import re
from urllib.parse import urlsplit, urlunsplit

from pgregistry.core.modules.resident.models import ProfileImage, Resident

# Prefixes of references created in the browser when uploads are not configured
LOCAL_FILE_ID_PREFIXES = ("local_", "blob:")
MIN_FILE_ID_LENGTH = 5

ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
IMAGEKIT_HOST = "imagekit.io"


def is_deletable_file_id(file_id: str | None) -> bool:
    """Check whether a stored file id is safe to send to the ImageKit delete API.

    Browser-local placeholders, URLs and path-like values are rejected: the
    remote API would fail on them or silently do nothing.
    """
    if not file_id:
        return False
    if file_id.startswith(LOCAL_FILE_ID_PREFIXES):
        return False
    if ABSOLUTE_URL_RE.match(file_id):
        return False
    if "/" in file_id:
        return False
    return len(file_id) >= MIN_FILE_ID_LENGTH


def build_full_url(url: str | None, url_endpoint: str | None) -> str:
    """Resolve a relative ImageKit file path against the configured URL endpoint."""
    if not url:
        return ""
    if ABSOLUTE_URL_RE.match(url) or url.startswith("blob:") or not url_endpoint:
        return url
    return url_endpoint.rstrip("/") + (url if url.startswith("/") else "/" + url)


def make_optimized_url(url: str | None, width: int = 400, height: int = 400, quality: int = 80) -> str:
    """Insert an ImageKit thumbnail transform into an ImageKit-hosted URL.

    https://ik.imagekit.io/acme/pg/photo.jpg becomes
    https://ik.imagekit.io/acme/tr:w-400,h-400,q-80/pg/photo.jpg. Other URLs are returned unchanged.
    """
    if not url:
        return ""
    if url.startswith("blob:"):
        return url
    parts = urlsplit(url)
    if IMAGEKIT_HOST not in (parts.hostname or ""):
        return url
    segments = [s for s in parts.path.split("/") if s]
    if len(segments) < 2:
        return url
    account, rest = segments[0], "/".join(segments[1:])
    path = f"/{account}/tr:w-{width},h-{height},q-{quality}/{rest}"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def normalize_resident_files(resident: Resident, url_endpoint: str | None) -> Resident:
    """Return a copy of the resident with absolute image and document URLs."""
    update: dict[str, object] = {}
    if resident.profile_image is not None:
        full_url = build_full_url(resident.profile_image.url, url_endpoint)
        update["profile_image"] = resident.profile_image.model_copy(
            update={"url": full_url, "optimized_url": make_optimized_url(full_url)}
        )
    if resident.documents:
        update["documents"] = [
            doc.model_copy(update={"url": build_full_url(doc.url, url_endpoint)}) for doc in resident.documents
        ]
    if not update:
        return resident
    return resident.model_copy(update=update)


def is_placeholder_image(image: ProfileImage | None) -> bool:
    """Detect profile images that only ever existed in a browser (blob URLs, local ids)."""
    if image is None:
        return False
    if not image.url and not image.file_id:
        return False
    if image.file_id and image.file_id.startswith("local_"):
        return True
    if "blob:" in image.url or "localhost" in image.url:
        return True
    return bool(image.optimized_url and "blob:" in image.optimized_url)
