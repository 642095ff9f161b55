"""W3C API client used to resolve GitHub accounts to W3C accounts.

Chairs are identified by their GitHub database id (logins may change at any
time). Lookups are memoized per client since the same person often chairs
several sessions.
"""

import threading

import requests
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from breakouts.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from breakouts.logging import get_logger

logger = get_logger(__name__)

W3C_API_URL = "https://api.w3.org"


class W3CAccount(BaseModel):
    github_id: int
    w3c_id: int
    name: str
    email: str | None = None


class W3CClient:
    """Read-only client for the W3C users API."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise AuthenticationError("No W3C_API_KEY found in environment or .env file")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f'W3C-API apikey="{api_key}"'})
        self._cache: dict[int, W3CAccount | None] = {}
        self._lock = threading.Lock()

    def fetch_account(self, database_id: int) -> W3CAccount | None:
        """Return the W3C account connected to a GitHub account, if any."""
        with self._lock:
            if database_id in self._cache:
                return self._cache[database_id]
        account = self._fetch_account(database_id)
        with self._lock:
            self._cache[database_id] = account
        return account

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def _fetch_account(self, database_id: int) -> W3CAccount | None:
        url = f"{W3C_API_URL}/users/connected/github/{database_id}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("w3c_request_failed", github_id=database_id, error=str(e))
            raise TransientError(f"W3C API request failed: {e}") from e

        if resp.status_code == 404:
            logger.debug("w3c_account_not_found", github_id=database_id)
            return None
        if resp.status_code == 429:
            raise RateLimitError("W3C API rate limit exceeded")
        if resp.status_code >= 500:
            raise TransientError(f"W3C API server error, {resp.status_code} status received")
        if resp.status_code == 403:
            raise AuthenticationError(
                f"W3C API server reports that the API key is invalid, {resp.status_code} status received"
            )
        if resp.status_code != 200:
            raise PermanentError(
                f"W3C API server returned an unexpected HTTP status {resp.status_code}"
            )

        data = resp.json()
        account = W3CAccount(
            github_id=database_id,
            w3c_id=data["id"],
            name=data["name"],
            email=data.get("email"),
        )
        logger.debug("w3c_account_found", github_id=database_id, w3c_id=account.w3c_id)
        return account
