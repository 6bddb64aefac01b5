from typing import Any, Dict, Optional

import httpx

from companion.core.logging import get_logger

logger = get_logger("client")


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompanionApiClient:
    """Small HTTP client for the Companion API"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _post(self, path: str, payload: Dict[str, Any], fallback_error: str) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error("API request failed", path=path, error=str(e))
            raise ApiError(f"{fallback_error}: {e}") from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = (body.get("error") if isinstance(body, dict) else None) or fallback_error
            raise ApiError(message, response.status_code)
        return response.json()

    def create_ai_model(self, model: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("/api/ai-models", model, "Failed to create AI model")
