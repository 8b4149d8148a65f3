"""Shared HTTP helpers used by the hosting API clients.

Encapsulates common request/timeout error handling so callers avoid
duplicating try/except blocks. Requests are made exactly once; callers
that need retries or deadlines impose them from outside.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.errors import RemoteIOError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def request_json(
    method: str,
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    payload: Optional[Any] = None,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform an HTTP request and parse its JSON body with DEBUG traces.

    Args:
        method: HTTP method, e.g. "GET" or "POST"
        url: Target URL
        context: Human-readable source tag for logs (e.g., "github")
        headers: Optional request headers
        payload: Optional JSON-serialisable request body

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)

    Raises:
        RemoteIOError: on timeouts and connection failures
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=Constants.REQUEST_TIMEOUT,
            )
        except requests.Timeout as exc:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                Constants.REQUEST_TIMEOUT,
            )
            raise RemoteIOError(f"{context} request to {safe_target} timed out") from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            raise RemoteIOError(f"{context} request to {safe_target} failed: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )

    data = None
    if res.text:
        try:
            data = json.loads(res.text)
        except json.JSONDecodeError:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="request_json",
                        outcome="json_decode_error",
                        status_code=res.status_code,
                        target=safe_target,
                    ),
                )
    return res.status_code, dict(res.headers), data


def get_json(
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """GET ``url`` and parse the JSON response."""
    return request_json("GET", url, context=context, headers=headers)


def post_json(
    url: str,
    payload: Any,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """POST a JSON ``payload`` to ``url`` and parse the JSON response."""
    return request_json("POST", url, context=context, headers=headers, payload=payload)
