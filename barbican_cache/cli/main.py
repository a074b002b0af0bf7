"""CLI entrypoint for barbican-cache."""
import sys
import argparse
import logging

from barbican_cache import __version__
from barbican_cache.secrets.domains.errors import SecretCacheError
from .validators import validate_name, validate_secret_value

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool, default_level: int = logging.WARNING) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else default_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _loaded_service():
    """Build a service from config and warm both cache tiers."""
    from barbican_cache.secrets.domains.config_loader import load_config
    from barbican_cache.secrets.workflows.secret_operations import build_service

    service = build_service(load_config())
    service.load_all()
    return service


def cmd_version(args):
    """Show version information."""
    print(f"barbican-cache {__version__}")


def cmd_config_show(args):
    """Show config file path and effective values."""
    from barbican_cache.secrets.domains.config_loader import get_config_path, load_config, masked

    config_path, source = get_config_path()
    suffix = "" if config_path.exists() else " (file not found)"
    print(f"Config path: {config_path}")
    print(f"Source: {source}{suffix}")

    config = masked(load_config())
    for section in sorted(config):
        print(f"\n[{section}]")
        for key, value in config[section].items():
            print(f"  {key}: {value}")


def cmd_serve(args):
    """Load the caches and serve the HTTP API."""
    import uvicorn
    from barbican_cache.api.server import create_app
    from barbican_cache.secrets.domains.config_loader import load_config
    from barbican_cache.secrets.workflows.secret_operations import build_service

    config = load_config()
    service = build_service(config)
    service.secrets.ping()
    service.load_all()

    host = args.host or config["server"]["host"]
    port = args.port or config["server"]["port"]
    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(create_app(service), host=host, port=port)


def cmd_load(args):
    """Run a full load and print the report."""
    from barbican_cache.secrets.domains.config_loader import load_config
    from barbican_cache.secrets.workflows.secret_operations import build_service

    report = build_service(load_config()).load_all()
    print(f"Containers loaded: {report.containers_loaded}")
    print(f"Secrets loaded: {report.secrets_loaded}")
    for warning in report.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def cmd_containers_create(args):
    """Create a container in Barbican."""
    validate_name("Container", args.container)
    container_id = _loaded_service().create_container(args.container)
    print(f"Container '{args.container}' created: {container_id}")


def cmd_secrets_put(args):
    """Upload a secret into a container."""
    validate_name("Container", args.container)
    validate_name("Secret", args.secret_name)
    validate_secret_value(args.value)

    entry = _loaded_service().upload_secret(args.container, args.secret_name, args.value.encode("utf-8"))
    print(f"Secret '{args.container}/{entry.name}' stored: {entry.identifier}")


def cmd_secrets_get(args):
    """Fetch a secret payload."""
    validate_name("Container", args.container)
    validate_name("Secret", args.secret_name)

    payload = _loaded_service().get_secret(args.container, args.secret_name)
    value = payload.decode("utf-8", errors="replace")
    if args.quiet:
        print(value)
    else:
        print(f"Secret '{args.container}/{args.secret_name}': {value}")


def cmd_secrets_delete(args):
    """Delete a secret."""
    validate_name("Container", args.container)
    validate_name("Secret", args.secret_name)

    _loaded_service().delete_secret(args.container, args.secret_name)
    print(f"Secret '{args.container}/{args.secret_name}' deleted")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barbican-cache",
        description="Barbican secret cache - name-based access to Barbican secrets backed by Redis",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (configuration, Barbican, Redis, secret not found, etc.)
  2 - Usage error (invalid arguments, invalid name format, etc.)

Environment variables:
  BARBICAN_CACHE_CONFIG                    - Config file path
  BARBICAN_URL                             - Barbican endpoint
  OS_AUTH_URL                              - Keystone endpoint
  OS_APPLICATION_CREDENTIAL_CLIENT_ID      - Application credential ID
  OS_APPLICATION_CREDENTIAL_CLIENT_SECRET  - Application credential secret
  KV_URL                                   - Redis URL

Configuration:
  Default location: ~/.config/barbican-cache/config.yml
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("version", help="Show version information")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.set_defaults(group_parser=config_parser)
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_subparsers.add_parser(
        "show",
        help="Show config path and effective values",
        description="Display the configuration file path, its source and the merged values (secrets masked)."
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API",
        description="Load all containers from Barbican into the caches, then serve the HTTP API."
    )
    serve_parser.add_argument("--host", help="Bind address (default: server.host from config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: server.port from config)")

    subparsers.add_parser(
        "load",
        help="Reload the caches from Barbican",
        description="List every container in Barbican and rewrite both cache tiers."
    )

    containers_parser = subparsers.add_parser("containers", help="Container operations")
    containers_parser.set_defaults(group_parser=containers_parser)
    containers_subparsers = containers_parser.add_subparsers(dest="containers_command")
    create_parser = containers_subparsers.add_parser("create", help="Create a container")
    create_parser.add_argument("container", help="Container name")

    secrets_parser = subparsers.add_parser("secrets", help="Secret operations")
    secrets_parser.set_defaults(group_parser=secrets_parser)
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    put_parser = secrets_subparsers.add_parser("put", help="Upload a secret to a container")
    put_parser.add_argument("container", help="Container name")
    put_parser.add_argument("secret_name", help="Secret name")
    put_parser.add_argument("value", help="Secret value")

    get_parser = secrets_subparsers.add_parser(
        "get",
        help="Get a secret value",
        description="""
Fetch a secret by container and name.

The secret identifier is resolved from the shared Redis index only. A secret
that exists in Barbican but is not indexed is reported as not found.
        """
    )
    get_parser.add_argument("container", help="Container name")
    get_parser.add_argument("secret_name", help="Secret name")
    get_parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Output only the secret value (useful for scripts)"
    )

    delete_parser = secrets_subparsers.add_parser("delete", help="Delete a secret")
    delete_parser.add_argument("container", help="Container name")
    delete_parser.add_argument("secret_name", help="Secret name")

    return parser


COMMANDS = {
    ("version", None): cmd_version,
    ("config", "show"): cmd_config_show,
    ("serve", None): cmd_serve,
    ("load", None): cmd_load,
    ("containers", "create"): cmd_containers_create,
    ("secrets", "put"): cmd_secrets_put,
    ("secrets", "get"): cmd_secrets_get,
    ("secrets", "delete"): cmd_secrets_delete,
}


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (configuration, Barbican, Redis, secret not found, etc.)
        2 - Usage errors (invalid arguments, invalid name format, etc.)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    subcommand = getattr(args, f"{args.command}_command", None)
    handler = COMMANDS.get((args.command, subcommand))
    if handler is None:
        getattr(args, "group_parser", parser).print_help()
        sys.exit(2)

    _configure_logging(args.verbose, logging.INFO if args.command == "serve" else logging.WARNING)

    try:
        handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except SecretCacheError as e:
        print(f"Error: {e.message} ({e.detail})", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
