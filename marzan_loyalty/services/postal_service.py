import logging
import re

import httpx

from marzan_loyalty import config
from marzan_loyalty.errors import ExternalServiceError, NotFoundError, ValidationError


logger = logging.getLogger(__name__)


class PostalLookup:
    """CEP lookup against a ViaCEP-compatible JSON endpoint."""

    def __init__(self, base_url: str | None = None, *, client: httpx.Client | None = None) -> None:
        self._base_url = (base_url or config.POSTAL_LOOKUP_URL).rstrip("/")
        self._client = client

    def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url)
        with httpx.Client(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
            return client.get(url)

    def lookup(self, cep: str) -> dict:
        digits = re.sub(r"\D", "", cep or "")
        if len(digits) != 8:
            raise ValidationError("CEP must have 8 digits")

        try:
            response = self._get(f"{self._base_url}/{digits}/json/")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("postal lookup failed", extra={"cep": digits, "error": str(e)})
            raise ExternalServiceError("Postal lookup failed") from e

        if not isinstance(data, dict) or data.get("erro"):
            raise NotFoundError("CEP not found")

        return {
            "cep": f"{digits[:5]}-{digits[5:]}",
            "street": data.get("logradouro") or "",
            "neighborhood": data.get("bairro") or "",
            "city": data.get("localidade") or "",
            "state": data.get("uf") or "",
        }
