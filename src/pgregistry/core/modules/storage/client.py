"""Minimal ImageKit REST client."""

import hashlib
import hmac
import time
from uuid import uuid4

import httpx
import structlog

from pgregistry.errors import ExternalStorageError

logger = structlog.get_logger(__name__)

# Upload signatures stay valid for 30 minutes, as in the official SDKs
DEFAULT_EXPIRE_SECONDS = 30 * 60
REQUEST_TIMEOUT_SECONDS = 10.0


class ImageKitClient:
    """Talks to the ImageKit media API with private-key basic auth."""

    def __init__(
        self,
        public_key: str,
        private_key: str,
        url_endpoint: str,
        api_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.public_key = public_key
        self.url_endpoint = url_endpoint
        self._private_key = private_key
        self._http = httpx.AsyncClient(
            base_url=api_url,
            auth=(private_key, ""),
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def delete_file(self, file_id: str) -> None:
        """Delete a file by its ImageKit file id.

        Raises:
            ExternalStorageError: If the request fails or ImageKit rejects it
        """
        try:
            response = await self._http.delete(f"/files/{file_id}")
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalStorageError(
                f"ImageKit refused to delete {file_id}: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalStorageError(f"ImageKit delete request for {file_id} failed: {e}") from e
        logger.debug("imagekit_file_deleted", file_id=file_id)

    def get_authentication_parameters(self, token: str | None = None, expire: int | None = None) -> tuple[str, int, str]:
        """Build (token, expire, signature) for a client-side upload."""
        token = token or uuid4().hex
        expire = expire or int(time.time()) + DEFAULT_EXPIRE_SECONDS
        signature = hmac.new(self._private_key.encode(), f"{token}{expire}".encode(), hashlib.sha1).hexdigest()
        return token, expire, signature

    async def aclose(self) -> None:
        await self._http.aclose()
