"""Keystone application-credential token provider."""
import logging
from typing import Optional

import httpx

from .errors import TokenError

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Subject-Token"


class KeystoneTokenProvider:
    """
    Fetches a scoped token from Keystone using an application credential.

    Instances are callable so they can be handed to BarbicanClient as a plain
    token provider. Every call requests a fresh token.
    """

    def __init__(self, auth_url: str, credential_id: str, credential_secret: str,
                 http_client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.auth_url = auth_url.rstrip("/")
        self.credential_id = credential_id
        self.credential_secret = credential_secret
        self.timeout = timeout
        self._client = http_client

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _auth_body(self) -> dict:
        return {
            "auth": {
                "identity": {
                    "methods": ["application_credential"],
                    "application_credential": {
                        "id": self.credential_id,
                        "secret": self.credential_secret,
                    },
                }
            }
        }

    def __call__(self) -> str:
        """
        Request a new token.

        Returns:
            Token string for the ``X-Auth-Token`` header

        Raises:
            TokenError: If Keystone is unreachable, rejects the credential,
                or omits the token header
        """
        url = f"{self.auth_url}/auth/tokens"
        try:
            response = self.client.post(url, json=self._auth_body())
        except httpx.TransportError as e:
            logger.error(f"Keystone request to {url} failed: {e}")
            raise TokenError(f"Keystone unreachable at {url}") from e

        if response.status_code != httpx.codes.CREATED:
            logger.error(f"Keystone rejected application credential (status {response.status_code}): {response.text}")
            raise TokenError(f"Keystone returned status {response.status_code}")

        token = response.headers.get(TOKEN_HEADER)
        if not token:
            raise TokenError(f"Keystone response missing {TOKEN_HEADER} header")
        return token
