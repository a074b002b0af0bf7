"""Domain models for containers and secrets held in Barbican."""
from dataclasses import dataclass, field
from typing import List, NewType, Optional, Tuple

# Canonical identifiers extracted from Barbican references
ContainerId = NewType("ContainerId", str)
SecretId = NewType("SecretId", str)


@dataclass(frozen=True)
class SecretEntry:
    """A named secret attached to a container."""
    name: str
    identifier: SecretId


@dataclass
class ContainerRecord:
    """Projection of a Barbican container as returned by the backend.

    ``reference`` is the raw ``container_ref`` URL; ``secret_refs`` keeps the raw
    (name, secret_ref) pairs in listing order so that identifier extraction can
    skip malformed entries individually.
    """
    name: str
    reference: str
    status: Optional[str] = None
    type: Optional[str] = None
    creator_id: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    secret_refs: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict, default_name: Optional[str] = None) -> "ContainerRecord":
        """Build a record from a Barbican container JSON object."""
        secret_refs = [
            (item.get("name", ""), item.get("secret_ref", ""))
            for item in data.get("secret_refs") or []
        ]
        return cls(
            name=data.get("name") or default_name or "",
            reference=data.get("container_ref", ""),
            status=data.get("status"),
            type=data.get("type"),
            creator_id=data.get("creator_id"),
            created=data.get("created"),
            updated=data.get("updated"),
            secret_refs=secret_refs,
        )


@dataclass
class LoadReport:
    """Outcome of a full cache load from the backend."""
    containers_loaded: int = 0
    secrets_loaded: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings
