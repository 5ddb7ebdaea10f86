# =============================================================================
# core/http.py  —  External Call Orchestrator
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every tool that talks to a third-party API goes through ONE function:
#   ExternalCallOrchestrator.call().  It owns the deadline, the cancellation
#   and the translation of every failure into an OrchestratorError.  Handlers
#   never implement their own timeouts.
#
# HOW THE DEADLINE WORKS:
#   The request AND the body read run inside asyncio.wait_for().
#     - response first  → wait_for returns, its timer is discarded
#     - deadline first  → wait_for cancels the request task (aiohttp closes
#                         the connection) and we raise Timeout
#   The cancellation only touches this one call; other invocations running
#   on the same event loop are unaffected.
#
# FAILURE MAPPING:
#   deadline elapsed              → Timeout
#   aiohttp.ClientError / OSError → NetworkFailure
#   non-2xx status                → UpstreamFailure (status, reason, detail)
#   unparsable / empty body       → MalformedResponse
#
# No retries: one failed attempt is final for that invocation.
# =============================================================================

import asyncio
import json
import logging
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlsplit

import aiohttp

from core.errors import ErrorKind, OrchestratorError

logger = logging.getLogger(__name__)

# Contractual budgets per call site (milliseconds).
GEOCODE_TIMEOUT_MS = 10_000
WEATHER_TIMEOUT_MS = 15_000
IMAGE_TIMEOUT_MS = 60_000

_DETAIL_LIMIT = 200


class ExternalCallOrchestrator:
    """Single-shot, deadline-bounded HTTP calls.

    Args:
        user_agent: Identifying User-Agent sent on every request.
        session_factory: Callable returning an aiohttp.ClientSession-like
            async context manager.  Each call opens its own session, so
            concurrent invocations share no connection state.
    """

    def __init__(self, user_agent: str, session_factory: Optional[Callable[[], Any]] = None):
        self._user_agent = user_agent
        self._session_factory = session_factory or aiohttp.ClientSession

    async def call(
        self,
        url: str,
        *,
        timeout_ms: int,
        method: str = "GET",
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json_body: Any = None,
        expect: str = "json",
    ) -> Any:
        """Perform one request and return the parsed body.

        `expect="json"` returns the decoded JSON value, `expect="bytes"` the
        raw body.  Raises OrchestratorError on every failure.
        """
        service = urlsplit(url).hostname or "upstream"
        request_headers = {"User-Agent": self._user_agent}
        if headers:
            request_headers.update(headers)

        logger.debug("%s %s (budget %d ms)", method, service, timeout_ms)
        try:
            status, reason, body = await asyncio.wait_for(
                self._send(method, url, params, request_headers, json_body),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as exc:
            raise OrchestratorError(
                ErrorKind.TIMEOUT,
                service,
                f"Request to {service} timed out after {timeout_ms} ms",
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise OrchestratorError(
                ErrorKind.NETWORK_FAILURE,
                service,
                f"Could not reach {service} ({type(exc).__name__})",
            ) from exc

        if not 200 <= status < 300:
            detail = _error_detail(body)
            message = f"{service} returned HTTP {status}"
            if reason:
                message += f" {reason}"
            if detail:
                message += f": {detail}"
            raise OrchestratorError(
                ErrorKind.UPSTREAM_FAILURE,
                service,
                message,
                status=status,
                status_text=reason,
                detail=detail,
            )

        if expect == "bytes":
            if not body:
                raise OrchestratorError(
                    ErrorKind.MALFORMED_RESPONSE, service, f"{service} returned an empty body"
                )
            return body

        try:
            return json.loads(body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise OrchestratorError(
                ErrorKind.MALFORMED_RESPONSE,
                service,
                f"{service} returned a response that is not valid JSON",
            ) from exc

    async def _send(self, method, url, params, headers, json_body):
        async with self._session_factory() as session:
            async with session.request(
                method, url, params=params, headers=headers, json=json_body
            ) as response:
                body = await response.read()
                return response.status, response.reason or "", body


def _error_detail(body: bytes) -> str:
    """Pull a short human reason out of an error body, if it has one."""
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return ""
    if not isinstance(payload, dict):
        return ""
    for key in ("reason", "error", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:_DETAIL_LIMIT]
    return ""
