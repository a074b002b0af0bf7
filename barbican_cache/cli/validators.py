"""Input validation for CLI arguments."""
import re
import sys

NAME_PATTERN = r'^[A-Za-z0-9_.-]+$'


def validate_name(kind: str, name: str) -> None:
    """
    Validate a container or secret name.

    Names become Redis hash keys/fields and Barbican path components, so only
    letters, digits, dots, underscores and hyphens are accepted.

    Args:
        kind: "Container" or "Secret", used in the error message
        name: Name to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print(f"Error: {kind} name cannot be empty", file=sys.stderr)
        sys.exit(2)

    if not re.match(NAME_PATTERN, name):
        print(f"Error: Invalid {kind.lower()} name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, dots (.), underscores (_), hyphens (-)", file=sys.stderr)
        print("\nExamples of valid names:", file=sys.stderr)
        print("  ✓ billing", file=sys.stderr)
        print("  ✓ db-pass", file=sys.stderr)
        print("  ✓ api.key_v2", file=sys.stderr)
        sys.exit(2)


def validate_secret_value(value: str) -> None:
    """
    Validate secret value is not empty.

    Barbican rejects secrets with an empty payload.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not value:
        print("Error: Secret value cannot be empty", file=sys.stderr)
        sys.exit(2)
