"""HTTP surface — FastAPI app exposing the interactive and unattended triggers."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from autotube.app.bootstrap import PipelineServices, create_services
from autotube.app.run_request import build_run_config
from autotube.application.event_transport import EventStream, collect_events
from autotube.domain.errors import ValidationFailure

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def create_app(services: PipelineServices | None = None) -> FastAPI:
    """Build the app around one services container (created from the environment if omitted)."""
    if services is None:
        services = create_services()

    app = FastAPI(title="autotube", summary="Topic-to-YouTube video pipeline")
    app.state.services = services

    @app.post("/api/run")
    async def start_run(request: Request) -> Response:
        """Interactive trigger: stream the run's events as Server-Sent Events."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"message": "Request body must be valid JSON"}, status_code=400)

        try:
            config = build_run_config(body, services.request_defaults)
        except ValidationFailure as exc:
            logger.info("Rejected run request: %d issues", len(exc.issues))
            return JSONResponse({"message": exc.message, "issues": list(exc.issues)}, status_code=422)

        stream = EventStream(services.new_conductor(config), services.event_bus)
        logger.info("Streaming run %s", stream.run_id)
        return StreamingResponse(stream.sse(), media_type="text/event-stream", headers=SSE_HEADERS)

    @app.get("/api/run")
    async def run_unattended() -> JSONResponse:
        """Unattended trigger: run from environment configuration and report all events."""
        try:
            config = build_run_config(services.settings.run_payload(), services.defaults)
        except ValidationFailure as exc:
            logger.error("Environment run configuration is invalid: %s", exc.issues)
            return JSONResponse(
                {"ok": False, "message": exc.message, "issues": list(exc.issues), "events": []},
                status_code=500,
            )

        report = await collect_events(services.new_conductor(config), services.event_bus)
        body = report.to_dict()
        if not report.ok:
            last = report.events[-1] if report.events else None
            body["message"] = (last.detail if last and last.detail else None) or "Run did not complete"
        return JSONResponse(body, status_code=200 if report.ok else 500)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
