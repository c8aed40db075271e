#!/usr/bin/env python3
"""GitHub webhook receiver for push events.

Verifies the HMAC signature of each delivery and hands verified push payloads
to the release PR agent. Concurrent deliveries run in parallel threads with no
locking; overlapping runs are last-write-wins and the next push re-converges.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple

from utils.github_client import GithubApiError
from utils.merge_set import MalformedMergeCommitError


logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def verify_signature(secret: str, body: bytes, signature_header: Optional[str]) -> bool:
    if not secret or not signature_header:
        return False
    if not signature_header.startswith(SIGNATURE_PREFIX):
        return False
    expected = SIGNATURE_PREFIX + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


def handle_delivery(
    agent,
    *,
    event: Optional[str],
    signature: Optional[str],
    delivery_id: Optional[str],
    body: bytes,
    secret: str,
) -> Tuple[int, Dict[str, Any]]:
    """Process one webhook delivery.

    Returns:
        (HTTP status, JSON response payload)
    """
    if not (event and signature and delivery_id):
        return HTTPStatus.BAD_REQUEST, {"message": "missing webhook headers"}
    if not verify_signature(secret, body, signature):
        logger.warning(f"Rejected delivery {delivery_id}: bad signature")
        return HTTPStatus.UNAUTHORIZED, {"message": "invalid signature"}
    if event == "ping":
        return HTTPStatus.OK, {"message": "pong"}
    if event != "push":
        logger.debug(f"Ignoring {event} delivery {delivery_id}")
        return HTTPStatus.ACCEPTED, {"message": f"ignored event {event}"}

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return HTTPStatus.BAD_REQUEST, {"message": "invalid JSON payload"}

    try:
        result = agent.handle_push(payload)
    except MalformedMergeCommitError as e:
        logger.error(f"Delivery {delivery_id} failed: {e}")
        return HTTPStatus.UNPROCESSABLE_ENTITY, {"message": str(e), "code": e.code}
    except GithubApiError as e:
        logger.error(f"Delivery {delivery_id} failed ({e.code}): {e}")
        return HTTPStatus.BAD_GATEWAY, {"message": str(e), "code": e.code}

    logger.info(f"Delivery {delivery_id}: {result.action} {result.repo}")
    return HTTPStatus.OK, {"message": "ok", "result": result.to_dict()}


def make_handler(agent, secret: str):
    class WebhookHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            self._send(HTTPStatus.OK, b"release-pr-agent ok", "text/plain; charset=utf-8")

        def do_POST(self):
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                self._send_json(HTTPStatus.BAD_REQUEST, {"message": "invalid Content-Length"})
                return
            body = self.rfile.read(length) if length > 0 else b""
            status, payload = handle_delivery(
                agent,
                event=self.headers.get("X-GitHub-Event"),
                signature=self.headers.get("X-Hub-Signature-256"),
                delivery_id=self.headers.get("X-GitHub-Delivery"),
                body=body,
                secret=secret,
            )
            self._send_json(status, payload)

        def _send_json(self, status: int, payload: Dict[str, Any]) -> None:
            self._send(status, json.dumps(payload).encode("utf-8"), "application/json")

        def _send(self, status: int, data: bytes, content_type: str) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, format, *args):
            logger.debug("%s - %s", self.address_string(), format % args)

    return WebhookHandler


def serve(agent, *, host: str, port: int, secret: str) -> None:
    if not secret:
        logger.warning("GITHUB_WEBHOOK_SECRET is empty; every delivery will be rejected")
    server = ThreadingHTTPServer((host, port), make_handler(agent, secret))
    logger.info(f"Webhook receiver listening on {host}:{port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Webhook receiver stopping")
    finally:
        server.server_close()
