import logging

import httpx

from marzan_loyalty import config
from marzan_loyalty.errors import ExternalServiceError


logger = logging.getLogger(__name__)


class ImgurImageHost:
    """Uploads images to Imgur and returns their public links."""

    def __init__(
        self,
        client_id: str | None = None,
        *,
        upload_url: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._client_id = client_id if client_id is not None else config.IMGUR_CLIENT_ID
        self._upload_url = upload_url or config.IMAGE_UPLOAD_URL
        self._client = client

    def _post(self, **kwargs) -> httpx.Response:
        if self._client is not None:
            return self._client.post(self._upload_url, **kwargs)
        with httpx.Client(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
            return client.post(self._upload_url, **kwargs)

    def upload(self, content: bytes, filename: str, content_type: str | None = None) -> str:
        if not self._client_id:
            raise ExternalServiceError("Image hosting is not configured")

        try:
            response = self._post(
                headers={"Authorization": f"Client-ID {self._client_id}"},
                files={"image": (filename, content, content_type or "application/octet-stream")},
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("image upload failed", extra={"upload_filename": filename, "error": str(e)})
            raise ExternalServiceError("Image upload failed") from e

        if not data.get("success"):
            error = (data.get("data") or {}).get("error")
            logger.warning("image upload rejected", extra={"upload_filename": filename, "error": str(error)})
            raise ExternalServiceError("Image upload failed")

        return data["data"]["link"]
