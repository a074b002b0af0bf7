"""Parsing of Barbican reference URLs."""
from .errors import MalformedReference


def extract_identifier(ref: str) -> str:
    """
    Return the canonical identifier at the end of a Barbican reference.

    Args:
        ref: Reference URL, e.g. ``https://barbican/v1/secrets/<uuid>``

    Returns:
        The final path segment

    Raises:
        MalformedReference: If ``ref`` is empty or ends with a slash
    """
    if not ref:
        raise MalformedReference("Empty reference")

    identifier = ref.rsplit("/", 1)[-1]
    if not identifier:
        raise MalformedReference(f"Empty identifier in reference: {ref}")
    return identifier
