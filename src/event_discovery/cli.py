"""Command-line interface for event discovery."""

import argparse
import asyncio
import json
import logging
import sys

from event_discovery.errors import FeedError


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from event_discovery.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "event_discovery.api.app:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )
    return 0


def _fetch(args: argparse.Namespace) -> int:
    from event_discovery.config import get_settings
    from event_discovery.pipeline.service import EventPipeline

    settings = get_settings()
    if args.min_events is not None:
        settings = settings.model_copy(update={"min_events_per_venue": args.min_events})

    try:
        result = asyncio.run(EventPipeline(settings).run())
    except FeedError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    json.dump(result.to_response(), sys.stdout, ensure_ascii=False, indent=args.indent)
    sys.stdout.write("\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Event Discovery - Venues and events from the LCSD open-data feeds"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default: from settings)")
    serve_parser.add_argument("--port", type=int, help="Port (default: from settings)")
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development)",
    )

    # Fetch command
    fetch_parser = subparsers.add_parser(
        "fetch", help="Run the feed pipeline once and print the venue groups as JSON"
    )
    fetch_parser.add_argument(
        "--min-events",
        type=int,
        help="Minimum events per venue (default: from settings)",
    )
    fetch_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "serve":
        return _serve(args)
    return _fetch(args)


if __name__ == "__main__":
    sys.exit(main())
