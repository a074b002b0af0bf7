"""Barbican REST client wrapper."""
import base64
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from .errors import BackendRejected, BackendUnavailable
from .models import ContainerRecord

logger = logging.getLogger(__name__)

PAYLOAD_CONTENT_TYPE = "application/octet-stream"
PAYLOAD_CONTENT_ENCODING = "base64"
SECRET_TYPE = "symmetric"
CONTAINER_TYPE = "generic"


class BarbicanClient:
    """
    Wrapper around the Barbican v1 API.

    Every request carries an ``X-Auth-Token`` obtained from ``token_provider``.
    Transport failures raise BackendUnavailable and unexpected status codes raise
    BackendRejected. Nothing is retried here.
    """

    def __init__(self, base_url: str, token_provider: Callable[[], str],
                 http_client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout
        self._client = http_client

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = self.base_url + path
        headers = {"X-Auth-Token": self.token_provider()}
        try:
            return self.client.request(method, url, json=body, headers=headers)
        except httpx.TransportError as e:
            logger.error(f"Error making Barbican request {method} {url}: {e}")
            raise BackendUnavailable(url) from e

    def _expect(self, response: httpx.Response, status: int, message: str) -> None:
        if response.status_code != status:
            logger.error(f"{message}: status {response.status_code}, resp {response.text}")
            raise BackendRejected(response.status_code, message, response.text)

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        url = str(response.request.url)
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Error decoding Barbican response from {url}: {e}")
            raise BackendUnavailable(url, "Invalid JSON from Barbican") from e
        if not isinstance(data, dict):
            logger.error(f"Expected a JSON object from {url}, got {type(data).__name__}")
            raise BackendUnavailable(url, "Invalid JSON from Barbican")
        return data

    def list_containers(self) -> List[ContainerRecord]:
        """Return every container visible to the credential, with its secret refs."""
        response = self._request("GET", "/v1/containers")
        self._expect(response, httpx.codes.OK, "Failed to load containers")
        body = self._json(response)
        containers = [ContainerRecord.from_api(item) for item in body.get("containers") or []]
        logger.debug(f"Barbican listed {len(containers)} of {body.get('total', len(containers))} containers")
        return containers

    def create_container(self, name: str) -> ContainerRecord:
        response = self._request("POST", "/v1/containers", {"name": name, "type": CONTAINER_TYPE})
        self._expect(response, httpx.codes.CREATED, "Error creating container in Barbican")
        return ContainerRecord.from_api(self._json(response), default_name=name)

    def upload_secret(self, name: str, payload: bytes) -> str:
        """
        Store a secret payload in Barbican.

        Args:
            name: Secret name
            payload: Raw secret bytes, sent base64-encoded

        Returns:
            The new secret's reference URL
        """
        body = {
            "name": name,
            "payload": base64.b64encode(payload).decode("ascii"),
            "payload_content_type": PAYLOAD_CONTENT_TYPE,
            "payload_content_encoding": PAYLOAD_CONTENT_ENCODING,
            "secret_type": SECRET_TYPE,
        }
        response = self._request("POST", "/v1/secrets", body)
        self._expect(response, httpx.codes.CREATED, "Error uploading secret to Barbican")
        return self._json(response).get("secret_ref", "")

    def attach_secret(self, container_id: str, secret_ref: str, name: str) -> None:
        path = f"/v1/containers/{container_id}/secrets"
        logger.info(f"Adding secret {name} to container at {path}")
        response = self._request("POST", path, {"secret_ref": secret_ref, "name": name})
        self._expect(response, httpx.codes.CREATED, "Error adding secret to container")

    def fetch_secret_payload(self, secret_id: str) -> bytes:
        response = self._request("GET", f"/v1/secrets/{secret_id}/payload")
        self._expect(response, httpx.codes.OK, "Error getting secret from Barbican")
        return response.content

    def delete_secret(self, secret_id: str) -> None:
        response = self._request("DELETE", f"/v1/secrets/{secret_id}")
        self._expect(response, httpx.codes.NO_CONTENT, "Error deleting secret from Barbican")
