"""Main entry point — ``autotube serve`` / ``autotube run`` (or ``python3 -m autotube.app.main``)."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from autotube.app.bootstrap import PipelineServices, create_services
from autotube.app.run_request import build_run_config
from autotube.app.settings import PipelineSettings
from autotube.application.event_transport import collect_events
from autotube.domain.errors import ConfigurationError, ValidationFailure

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="autotube", description="Topic-to-YouTube video pipeline")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API (POST/GET /api/run)")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting)")

    sub.add_parser("run", help="Run once from environment configuration and print the JSON report")
    return parser


async def run_once(services: PipelineServices) -> int:
    """Unattended run; prints the report to stdout. Returns the process exit code."""
    try:
        config = build_run_config(services.settings.run_payload(), services.defaults)
    except ValidationFailure as exc:
        logger.error("Environment run configuration is invalid")
        print(json.dumps({"ok": False, "message": exc.message, "issues": list(exc.issues), "events": []}, indent=2))
        return 1

    report = await collect_events(services.new_conductor(config), services.event_bus)
    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.ok else 1


def serve(services: PipelineServices, host: str, port: int) -> None:
    import uvicorn

    from autotube.app.server import create_app

    logger.info("Serving on %s:%d", host, port)
    uvicorn.run(create_app(services), host=host, port=port, log_level=services.settings.log_level.lower())


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = PipelineSettings()
    _configure_logging(settings.log_level)

    try:
        services = create_services(settings)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc.message)
        return 2

    if args.command == "serve":
        serve(services, args.host or settings.host, args.port or settings.port)
        return 0
    return asyncio.run(run_once(services))


if __name__ == "__main__":
    sys.exit(main())
