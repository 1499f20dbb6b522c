"""
Client for the remote scoring model.

Uses requests for the HTTP call, run in the default executor and bounded
by asyncio.wait_for so a slow endpoint can never hold up a check-in.
"""

import asyncio
import logging
from typing import Optional

import requests
from pydantic import ValidationError

from safeguard.config import settings
from safeguard.schemas.scoring import RemoteFeatures, RemoteScoreResponse

logger = logging.getLogger(__name__)


class RemoteModelError(Exception):
    """Raised for any remote scoring failure: config, timeout, transport or payload."""


class RemoteModelClient:
    """
    Posts a feature record to the remote model and validates the response.
    
    Every failure surfaces as RemoteModelError.
    """
    
    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint if endpoint is not None else settings.REMOTE_MODEL_ENDPOINT
        self.api_key = api_key if api_key is not None else settings.REMOTE_MODEL_API_KEY
        self.timeout = timeout if timeout is not None else settings.REMOTE_MODEL_TIMEOUT_SECONDS
    
    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)
    
    def _post(self, body: dict) -> dict:
        """Blocking POST (sync)."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        
        try:
            response = requests.post(self.endpoint, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteModelError(f"NETWORK_ERROR: {e}") from e
        
        if not 200 <= response.status_code < 300:
            raise RemoteModelError(f"HTTP_{response.status_code}: {response.text[:200]}")
        
        try:
            return response.json()
        except ValueError as e:
            raise RemoteModelError(f"MALFORMED_PAYLOAD: {e}") from e
    
    async def score(self, features: RemoteFeatures) -> RemoteScoreResponse:
        """
        Score a feature record remotely (async).
        
        Raises:
            RemoteModelError: Not configured, timed out, non-2xx or schema mismatch.
        """
        if not self.enabled:
            raise RemoteModelError("CONFIG_MISSING: REMOTE_MODEL_ENDPOINT is not set")
        
        body = features.model_dump(by_alias=True)
        loop = asyncio.get_running_loop()
        try:
            payload = await asyncio.wait_for(
                loop.run_in_executor(None, self._post, body),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise RemoteModelError(f"TIMEOUT after {self.timeout}s") from e
        
        try:
            return RemoteScoreResponse.model_validate(payload)
        except ValidationError as e:
            raise RemoteModelError(f"MALFORMED_PAYLOAD: {e.error_count()} validation errors") from e


_remote_client: Optional[RemoteModelClient] = None


def get_remote_client() -> RemoteModelClient:
    """Get or create the shared remote model client."""
    global _remote_client
    if _remote_client is None:
        _remote_client = RemoteModelClient()
        if not _remote_client.enabled:
            logger.warning("REMOTE_MODEL_ENDPOINT not set - scoring with the local ensemble only")
    return _remote_client
