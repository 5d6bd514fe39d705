"""
Global Error Handling

This module defines application-wide exception handlers for the viewer
service.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Surface parser diagnostics for malformed documents, since they describe
  the caller's own input
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..storage.client import (
    DocumentTooLargeError,
    StorageClientError,
    StorageNotFoundError,
    StorageURLRejectedError,
)
from ..tei.parser import MalformedMarkupError

logger = logging.getLogger("tei.errors")


def _error_payload(error: str, detail: str) -> Dict[str, Any]:
    return {"error": error, "detail": detail}


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def malformed_markup_handler(
    request: Request,
    exc: MalformedMarkupError,
) -> JSONResponse:
    """
    Convert a failed XML parse into a 422 response.

    The diagnostic text comes from the XML engine and only describes the
    submitted document, so it is returned verbatim.
    """
    logger.info(
        "Rejected malformed markup on %s %s: %s",
        request.method,
        request.url.path,
        exc.diagnostic,
    )
    return JSONResponse(
        status_code=422,
        content=_error_payload("malformed_markup", exc.diagnostic),
    )


async def storage_error_handler(
    request: Request,
    exc: StorageClientError,
) -> JSONResponse:
    """
    Map storage failures to 404 (missing object), 400 (URL outside the
    backend), 413 (document over the size limit) or 502 (anything else).
    Backend response bodies are not forwarded.
    """
    if isinstance(exc, StorageNotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_error_payload("not_found", "File not found"),
        )
    if isinstance(exc, StorageURLRejectedError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_payload("invalid_document_url", "URL is not a stored document"),
        )
    if isinstance(exc, DocumentTooLargeError):
        return JSONResponse(
            status_code=413,
            content=_error_payload("document_too_large", str(exc)),
        )

    logger.error(
        "Storage backend failure during %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_payload("storage_unavailable", "Storage backend request failed"),
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    This handler should be registered with FastAPI as the final safety net
    for any exception not otherwise handled by route-level or framework-level
    handlers.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_payload("internal_server_error", "Internal server error"),
    )
