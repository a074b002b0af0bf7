"""Workflow for secret operations resolved through the two cache tiers."""
import logging
from typing import Any, Dict

from ..domains.barbican_client import BarbicanClient
from ..domains.container_index import LocalContainerIndex
from ..domains.errors import (
    CacheUnavailable,
    ContainerNotFound,
    MalformedReference,
    SecretNotFound,
)
from ..domains.keystone import KeystoneTokenProvider
from ..domains.models import ContainerRecord, LoadReport, SecretEntry, SecretId
from ..domains.references import extract_identifier
from ..domains.secret_index import SharedSecretIndex

logger = logging.getLogger(__name__)


class SecretService:
    """
    Resolves (container, secret) names to Barbican identifiers.

    Container identifiers live in the in-process LocalContainerIndex, secret
    identifiers in the Redis-backed SharedSecretIndex. Both are treated as
    authoritative: a miss is reported as not found and never triggers a
    Barbican lookup. Every mutation goes to Barbican first and updates the
    caches only once Barbican has accepted it.
    """

    def __init__(self, containers: LocalContainerIndex, secrets: SharedSecretIndex,
                 gateway: BarbicanClient):
        self.containers = containers
        self.secrets = secrets
        self.gateway = gateway

    def load_all(self) -> LoadReport:
        """
        Populate both tiers from Barbican's container listing.

        Malformed references and cache write failures are logged and skipped so
        that one bad record cannot block startup.

        Raises:
            BackendUnavailable, BackendRejected: If the listing itself fails
        """
        report = LoadReport()
        for record in self.gateway.list_containers():
            self._load_container(record, report)
        logger.info(
            f"Loaded {report.containers_loaded} containers and {report.secrets_loaded} secrets "
            f"({len(report.warnings)} warnings)"
        )
        return report

    def _load_container(self, record: ContainerRecord, report: LoadReport) -> None:
        try:
            container_id = extract_identifier(record.reference)
        except MalformedReference as e:
            logger.warning(f"Skipping container {record.name!r}: {e}")
            report.warnings.append(f"container {record.name}: {e}")
            return

        self.containers.set(record.name, container_id)
        report.containers_loaded += 1

        for secret_name, secret_ref in record.secret_refs:
            try:
                entry = SecretEntry(secret_name, SecretId(extract_identifier(secret_ref)))
            except MalformedReference as e:
                logger.warning(f"Skipping secret {secret_name!r} in container {record.name!r}: {e}")
                report.warnings.append(f"secret {record.name}/{secret_name}: {e}")
                continue
            try:
                self.secrets.hset(record.name, entry.name, entry.identifier)
            except CacheUnavailable as e:
                logger.error(f"Error saving secrets of container {record.name!r} to cache: {e}")
                report.warnings.append(f"container {record.name}: {e}")
                return
            report.secrets_loaded += 1

    def create_container(self, name: str) -> str:
        """
        Create a container in Barbican and cache its identifier.

        Returns:
            The new container identifier
        """
        record = self.gateway.create_container(name)
        container_id = extract_identifier(record.reference)
        self.containers.set(name, container_id)
        logger.info(f"Created container {name} ({container_id})")
        return container_id

    def upload_secret(self, container: str, name: str, payload: bytes) -> SecretEntry:
        """
        Upload a secret, attach it to ``container`` and cache its identifier.

        Raises:
            ContainerNotFound: If the container is not in the local index
        """
        container_id = self.containers.get(container)
        if container_id is None:
            logger.warning(f"Container not found in cache: {container}")
            raise ContainerNotFound(f"Container {container} not found")

        secret_ref = self.gateway.upload_secret(name, payload)
        self.gateway.attach_secret(container_id, secret_ref, name)

        try:
            entry = SecretEntry(name, SecretId(extract_identifier(secret_ref)))
        except MalformedReference:
            logger.warning(f"Invalid secret ref returned for {container}/{name}: {secret_ref!r}")
            raise

        self.secrets.hset(container, entry.name, entry.identifier)
        return entry

    def _resolve_secret(self, container: str, name: str) -> str:
        secret_id = self.secrets.hget(container, name)
        if secret_id is None:
            logger.warning(f"Secret not found in cache: {container}/{name}")
            raise SecretNotFound(f"Secret {container}/{name} not found")
        return secret_id

    def get_secret(self, container: str, name: str) -> bytes:
        """
        Fetch a secret payload.

        Only the shared index is consulted to resolve the identifier; a secret
        Barbican holds but the index does not know about is reported missing.

        Raises:
            SecretNotFound: If the shared index has no entry for the name
        """
        secret_id = self._resolve_secret(container, name)
        return self.gateway.fetch_secret_payload(secret_id)

    def delete_secret(self, container: str, name: str) -> None:
        """
        Delete a secret from Barbican and drop it from the shared index.

        A failure to update the index after Barbican has deleted the secret is
        logged but not raised; the next full load repairs the index.
        """
        if self.containers.get(container) is None:
            logger.warning(f"Container not found in cache: {container}")
            raise ContainerNotFound(f"Container {container} not found")

        secret_id = self._resolve_secret(container, name)
        self.gateway.delete_secret(secret_id)

        try:
            self.secrets.hdel(container, name)
        except CacheUnavailable as e:
            logger.error(
                f"Secret {container}/{name} ({secret_id}) deleted in Barbican "
                f"but still cached: {e}"
            )


def build_service(config: Dict[str, Any]) -> SecretService:
    """Wire a SecretService from a loaded configuration."""
    keystone = config["keystone"]
    timeout = config["barbican"]["timeout"]
    token_provider = KeystoneTokenProvider(
        keystone["auth_url"],
        keystone["application_credential_id"],
        keystone["application_credential_secret"],
        timeout=timeout,
    )
    gateway = BarbicanClient(config["barbican"]["url"], token_provider, timeout=timeout)
    containers = LocalContainerIndex(config["cache"]["container_capacity"])
    secrets = SharedSecretIndex.from_url(config["redis"]["url"])
    return SecretService(containers, secrets, gateway)
