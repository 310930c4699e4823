"""
HTTP payload tester service.

Two routes:
- GET /check/{route}: POST the payload to {protocol}://{route}/listen and
  report the outcome as JSON ({"status", "error", "bytes"})
- POST /listen: accept any body and answer 200 with an empty body

Run with `cf-http-payload-tester` (or `python service.py`), PORT must be set.
"""

import json
import logging
import os
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import Response

from config import (
    DEFAULT_LOG_LEVEL,
    ConfigError,
    Settings,
    format_duration,
    get_log_level,
    parse_args,
    settings_from_args,
)
from delivery import ResponseEnvelope, deliver
from payload import Payload, load_payload

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def halt(message: str) -> None:
    """Stop the whole process; used when continuing would serve wrong results."""
    logger.critical(message)
    os._exit(1)


def render_envelope(envelope: ResponseEnvelope) -> bytes:
    try:
        return json.dumps(envelope.to_dict(), separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        halt(f"Couldn't marshal JSON: {e}")
        raise


def body_allowed(status_code: int) -> bool:
    """HTTP forbids a response body for 1xx, 204 and 304."""
    return not (status_code < 200 or status_code in (204, 304))


def create_app(settings: Settings, payload: Payload) -> FastAPI:
    """Build the application around one immutable settings/payload pair."""
    app = FastAPI(title="cf-http-payload-tester")
    app.state.settings = settings
    app.state.payload = payload

    # Plain def: FastAPI runs it in its threadpool, so a slow downstream
    # only blocks this request
    @app.get("/check/{route:path}")
    def check(route: str, request: Request):
        envelope = deliver(request.app.state.payload, route, request.app.state.settings)
        status_code = envelope.http_status
        if not body_allowed(status_code):
            return Response(status_code=status_code)
        return Response(
            content=render_envelope(envelope),
            status_code=status_code,
            media_type="application/json",
        )

    @app.post("/listen")
    async def listen(request: Request):
        # Reaching this point with the whole body read is the signal being tested
        body = await request.body()
        logger.debug("Received %d bytes on /listen", len(body))
        return Response(status_code=200)

    return app


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=DEFAULT_LOG_LEVEL, format=LOG_FORMAT)

    args = parse_args(argv)
    try:
        log_level = get_log_level()
        logging.getLogger().setLevel(log_level)
        payload = load_payload(args.payload)
        settings = settings_from_args(args)
    except ConfigError as e:
        logger.critical("%s", e)
        raise SystemExit(1)

    logger.info("Loaded payload %s (%d bytes)", payload.path, payload.length)
    logger.info("Setting HTTP client timeout to %s", format_duration(settings.timeout))
    logger.info("Setting protocol to %s", settings.protocol)

    uvicorn.run(
        create_app(settings, payload),
        host=settings.host,
        port=settings.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
