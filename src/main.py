"""
HSB News RSS - command line runner
"""

import argparse
import signal
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from config_validator import validate_config
from exceptions import FetchError, InvalidRequestKey, PersistenceError
from feed_service import FeedService
from logging_config import get_logger, setup_logging
from settings import DEFAULT_CONFIG_PATH, Settings, load_settings


def _handle_sigterm(signum, frame):
    raise SystemExit(0)


def serve(service: FeedService, host: str, port: int) -> int:
    """Run the web server until interrupted, then persist the cache."""
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from web.app import create_app

    logger = get_logger(__name__)
    app = create_app(service)

    service.start()
    signal.signal(signal.SIGTERM, _handle_sigterm)
    logger.info("Serving news feeds", extra={"host": host, "port": port})

    try:
        app.run(host=host, port=port, threaded=True)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down")
        try:
            service.shutdown()
        except PersistenceError as e:
            logger.error("Failed to save cached feeds on shutdown", extra={"error": str(e)})
            return 1
    return 0


def fetch_once(service: FeedService, segments: list[str]) -> int:
    """Print the RSS document for one feed to stdout."""
    logger = get_logger(__name__)
    path = "/".join(segments)
    try:
        snapshot = service.get_feed(path)
    except InvalidRequestKey as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FetchError as e:
        logger.error("Failed to fetch feed", extra={"path": path, "error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.buffer.write(service.assembler.render(snapshot, service.clock()))
    sys.stdout.buffer.write(b"\n")
    return 0


def show_status(service: FeedService):
    """Show the feeds stored in the durable cache"""
    count = service.cache.load()

    print("\n" + "=" * 50)
    print("HSB News RSS - Cache status")
    print("=" * 50)
    print(f"Cache file: {service.cache.store.path}")
    print(f"Cached feeds: {count}")

    for entry in service.cache.entries():
        print(
            f"  {entry.key or '(default)'}: {len(entry.snapshot.items)} items, "
            f"refreshed {entry.last_refreshed_at.isoformat(timespec='seconds')}"
        )

    print("=" * 50 + "\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="HSB News RSS")
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-dir", default="logs", help="Directory for the log file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Serve the RSS feeds over HTTP")
    serve_parser.add_argument("--host", help="Bind address (overrides server.host)")
    serve_parser.add_argument("--port", type=int, help="Port (overrides server.port)")

    fetch_parser = subparsers.add_parser("fetch", help="Print one feed to stdout")
    fetch_parser.add_argument("region", nargs="?", help="Region, e.g. 'norr'")
    fetch_parser.add_argument("brf", nargs="?", help="Housing cooperative, e.g. 'hagern'")

    subparsers.add_parser("status", help="Show cached feeds")
    subparsers.add_parser("validate", help="Validate configuration file")

    args = parser.parse_args(argv)

    # Console only for one-shot commands
    log_dir = args.log_dir if args.command == "serve" else None
    setup_logging(log_dir=log_dir, verbose=args.verbose)
    logger = get_logger(__name__)

    config_exists = Path(args.config).exists()

    if args.command == "validate":
        result = validate_config(args.config)
        if result.is_valid:
            print(f"Configuration file '{args.config}' is valid.")
            return 0
        print(result, file=sys.stderr)
        return 1

    if config_exists:
        result = validate_config(args.config)
        if not result.is_valid:
            print(result, file=sys.stderr)
            return 1
        logger.info("Configuration validation passed", extra={"config_path": args.config})
        settings = load_settings(args.config)
    else:
        logger.info("No configuration file, using defaults", extra={"config_path": args.config})
        settings = Settings.from_dict(None)

    service = FeedService.from_settings(settings)

    if args.command == "serve":
        return serve(service, args.host or settings.host, args.port or settings.port)
    if args.command == "fetch":
        segments = [s for s in (args.region, args.brf) if s]
        try:
            return fetch_once(service, segments)
        finally:
            service.fetcher.close()
    if args.command == "status":
        show_status(service)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
