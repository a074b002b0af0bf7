"""Shared fixtures: an in-memory Barbican behind httpx.MockTransport and an in-memory Redis."""
import base64
import itertools
import json
import threading

import httpx
import pytest
import redis

from barbican_cache.secrets.domains.barbican_client import BarbicanClient
from barbican_cache.secrets.domains.container_index import LocalContainerIndex
from barbican_cache.secrets.domains.secret_index import SharedSecretIndex
from barbican_cache.secrets.workflows.secret_operations import SecretService

BARBICAN_URL = "https://barbican.test"
TOKEN = "test-token"


class InMemoryRedis:
    """Hash subset of the redis.Redis API, with switchable failure."""

    def __init__(self):
        self.hashes = {}
        self.fail = False
        self._lock = threading.Lock()

    def _check(self):
        if self.fail:
            raise redis.exceptions.ConnectionError("Connection refused")

    def ping(self):
        self._check()
        return True

    def hset(self, key, field, value):
        self._check()
        with self._lock:
            self.hashes.setdefault(key, {})[field] = value
        return 1

    def hget(self, key, field):
        self._check()
        with self._lock:
            return self.hashes.get(key, {}).get(field)

    def hdel(self, key, field):
        self._check()
        with self._lock:
            return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0


class FakeBarbican:
    """Minimal stateful Barbican v1 API."""

    def __init__(self):
        self.containers = {}  # container id -> {"name", "secret_refs"}
        self.payloads = {}    # secret id -> bytes
        self.requests = []
        self.overrides = {}   # (method, path) -> status code
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def container_ref(self, container_id):
        return f"{BARBICAN_URL}/v1/containers/{container_id}"

    def secret_ref(self, secret_id):
        return f"{BARBICAN_URL}/v1/secrets/{secret_id}"

    def add_container(self, name, container_id=None, container_ref=None, secret_refs=None):
        container_id = container_id or f"c-auto-{next(self._ids)}"
        self.containers[container_id] = {
            "name": name,
            "container_ref": container_ref if container_ref is not None else self.container_ref(container_id),
            "secret_refs": list(secret_refs or []),
        }
        return container_id

    def add_secret(self, payload, secret_id=None):
        secret_id = secret_id or f"s-auto-{next(self._ids)}"
        self.payloads[secret_id] = payload
        return secret_id

    def calls(self, method=None):
        return [r for r in self.requests if method is None or r.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            if request.headers.get("X-Auth-Token") != TOKEN:
                return httpx.Response(401, text="Unauthorized")
            path = request.url.path
            override = self.overrides.get((request.method, path))
            if override is not None:
                return httpx.Response(override, text="forced failure")
            return self._route(request, path.strip("/").split("/"))

    def _route(self, request, parts):
        method = request.method
        if parts == ["v1", "containers"] and method == "GET":
            listing = [
                {
                    "name": c["name"],
                    "type": "generic",
                    "status": "ACTIVE",
                    "container_ref": c["container_ref"],
                    "secret_refs": c["secret_refs"],
                }
                for c in self.containers.values()
            ]
            return httpx.Response(200, json={"containers": listing, "total": len(listing)})

        if parts == ["v1", "containers"] and method == "POST":
            body = json.loads(request.content)
            container_id = self.add_container(body["name"])
            return httpx.Response(201, json={"container_ref": self.container_ref(container_id)})

        if parts == ["v1", "secrets"] and method == "POST":
            body = json.loads(request.content)
            secret_id = self.add_secret(base64.b64decode(body["payload"]))
            return httpx.Response(201, json={"secret_ref": self.secret_ref(secret_id)})

        if len(parts) == 4 and parts[:2] == ["v1", "containers"] and parts[3] == "secrets" and method == "POST":
            container = self.containers.get(parts[2])
            if container is None:
                return httpx.Response(404, text="Container not found")
            body = json.loads(request.content)
            container["secret_refs"].append({"name": body["name"], "secret_ref": body["secret_ref"]})
            return httpx.Response(201, json={"container_ref": self.container_ref(parts[2])})

        if len(parts) == 4 and parts[:2] == ["v1", "secrets"] and parts[3] == "payload" and method == "GET":
            if parts[2] not in self.payloads:
                return httpx.Response(404, text="Secret not found")
            return httpx.Response(200, content=self.payloads[parts[2]])

        if len(parts) == 3 and parts[:2] == ["v1", "secrets"] and method == "DELETE":
            if self.payloads.pop(parts[2], None) is None:
                return httpx.Response(404, text="Secret not found")
            return httpx.Response(204)

        return httpx.Response(405, text="Method not allowed")


@pytest.fixture
def barbican():
    return FakeBarbican()


@pytest.fixture
def kv():
    return InMemoryRedis()


@pytest.fixture
def gateway(barbican):
    client = httpx.Client(transport=httpx.MockTransport(barbican.handler))
    return BarbicanClient(BARBICAN_URL, lambda: TOKEN, http_client=client)


@pytest.fixture
def service(gateway, kv):
    return SecretService(LocalContainerIndex(capacity=100), SharedSecretIndex(kv), gateway)
