"""
Outbound delivery test.

Sends the payload as a text/plain POST to {protocol}://{route}/listen and
describes the outcome as a ResponseEnvelope, which the check endpoint
returns as JSON.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from config import Settings
from payload import Payload

logger = logging.getLogger(__name__)

LISTEN_PATH = "/listen"
CONTENT_TYPE = "text/plain"


@dataclass
class ResponseEnvelope:
    bytes: int
    status: Optional[int] = None
    error: str = ""

    @property
    def http_status(self) -> int:
        """Status code for the check response itself."""
        # No downstream status means the request never completed
        return self.status if self.status is not None else 500

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.status is not None:
            body["status"] = self.status
        if self.error:
            body["error"] = self.error
        body["bytes"] = self.bytes
        return body


def build_target_url(protocol: str, route: str) -> str:
    """Build the downstream listen URL for a route (host plus optional path)."""
    return f"{protocol}://{route}{LISTEN_PATH}"


def deliver(payload: Payload, route: str, settings: Settings) -> ResponseEnvelope:
    """
    POST the payload to the route's listen endpoint.

    Transport failures (timeouts, refused connections, DNS errors,
    malformed targets) are reported in the envelope instead of raised.
    A non-200 answer keeps the downstream status and adds an explanatory
    error.

    Args:
        payload: Bytes to send
        route: Downstream host, optionally followed by a path
        settings: Supplies protocol and timeout

    Returns:
        ResponseEnvelope describing the outcome
    """
    envelope = ResponseEnvelope(bytes=payload.length)
    url = build_target_url(settings.protocol, route)

    try:
        response = requests.post(
            url,
            data=payload.content,
            headers={"Content-Type": CONTENT_TYPE},
            # 0 means wait indefinitely
            timeout=settings.timeout or None,
        )
    # urllib3 raises some URL and host errors (LocationParseError) as ValueError
    except (requests.RequestException, ValueError) as e:
        logger.warning("Delivery to %s failed: %s", url, e)
        envelope.error = f"Error while sending request: {e}"
        return envelope

    status = response.status_code
    response.close()

    if status != 200:
        logger.info("Delivery to %s returned status %d", url, status)
        envelope.error = f"Non 200-code returned from request to listening server: {status}"
    else:
        logger.debug("Delivered %d bytes to %s", payload.length, url)

    envelope.status = status
    return envelope
