import argparse
import json
import sys

from . import __version__
from .cancellation import CallContext
from .client import PokeAPIClient
from .config import Settings, get_settings
from .errors import ConfigError, PokeProxyError, ValidationError
from .logger import get_logger
from .service import PokemonService


def build_service(settings: Settings) -> PokemonService:
    # CLI output goes to stdout; keep logs off it unless asked for
    logger = get_logger(level=settings.log_level, fmt=settings.log_format, enable_console=False)
    client = PokeAPIClient(settings.pokeapi_base_url, timeout=settings.pokeapi_timeout, logger=logger)
    return PokemonService(client, logger=logger)


def _print_json(model) -> None:
    print(json.dumps(model.model_dump(mode="json"), indent=2, ensure_ascii=False))


def _run(args: argparse.Namespace, call) -> None:
    """Run a service call with a fresh context and map domain errors to exit codes."""
    settings = get_settings()
    service = build_service(settings)
    ctx = CallContext(timeout=args.timeout or settings.request_timeout)
    try:
        result = call(service, ctx)
    except ValidationError as e:
        print(f"Invalid: {e}", file=sys.stderr)
        raise SystemExit(2)
    except PokeProxyError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    except KeyboardInterrupt:
        ctx.cancel()
        raise SystemExit(130)
    _print_json(result)


def cmd_get(args: argparse.Namespace) -> None:
    _run(args, lambda service, ctx: service.get_by_key(ctx, args.name_or_id))


def cmd_compare(args: argparse.Namespace) -> None:
    _run(args, lambda service, ctx: service.compare(ctx, args.first, args.second))


def cmd_list(args: argparse.Namespace) -> None:
    _run(args, lambda service, ctx: service.list(ctx, args.limit, args.offset))


def cmd_count(args: argparse.Namespace) -> None:
    _run(args, lambda service, ctx: service.get_count(ctx))


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from .api import create_app

    settings = get_settings()
    host = args.host or settings.server_host
    port = args.port or settings.server_port
    logger = get_logger(level=settings.log_level, fmt=settings.log_format)
    logger.info("Starting HTTP server", addr=f"{host}:{port}")
    uvicorn.run(create_app(settings=settings, logger=logger), host=host, port=port, log_level="warning")
    logger.info("Server stopped gracefully")
    logger.log_metrics_summary()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="pokeproxy", description="Resilient PokeAPI proxy")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--timeout", type=float, help="Overall deadline in seconds (default: REQUEST_TIMEOUT)")

    subparsers = parser.add_subparsers(dest="command")
    get = subparsers.add_parser("get", help="Fetch a pokemon by name or ID")
    get.add_argument("name_or_id", help="Pokemon name (e.g. 'pikachu') or ID (e.g. '25')")
    get.set_defaults(func=cmd_get)

    cmp_ = subparsers.add_parser("compare", help="Compare two pokemon by type effectiveness")
    cmp_.add_argument("first", help="First pokemon name or ID")
    cmp_.add_argument("second", help="Second pokemon name or ID")
    cmp_.set_defaults(func=cmd_compare)

    lst = subparsers.add_parser("list", help="List pokemon, paginated")
    lst.add_argument("--limit", type=int, default=20, help="Page size, 1-100 (default 20)")
    lst.add_argument("--offset", type=int, default=0, help="Number of entries to skip (default 0)")
    lst.set_defaults(func=cmd_list)

    cnt = subparsers.add_parser("count", help="Show the total number of pokemon")
    cnt.set_defaults(func=cmd_count)

    srv = subparsers.add_parser("serve", help="Run the HTTP API")
    srv.add_argument("--host", help="Bind host (default: SERVER_HOST)")
    srv.add_argument("--port", type=int, help="Bind port (default: SERVER_PORT)")
    srv.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except ConfigError as e:
            raise SystemExit(f"Configuration error: {e}")
        return

    parser.print_help()


if __name__ == "__main__":
    main()
