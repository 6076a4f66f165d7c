"""Landing page and health check endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

import wisp

router = APIRouter()

LANDING_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Wisp</title></head>
<style>
a {
    font-size: 100px;
}
</style>
<body><a href="/docs">Docs</a></body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing() -> HTMLResponse:
    return HTMLResponse(LANDING_PAGE)


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Runtime health check.

    Reports the version and, when a limiter is configured, how many tokens
    are free and how many requests are waiting for one.
    """
    response: dict[str, Any] = {
        "status": "ok",
        "version": wisp.__version__,
    }

    limiter = getattr(request.app.state, "limiter", None)
    if limiter is not None:
        response["tokens_available"] = limiter.available_tokens
        response["requests_queued"] = limiter.queued

    return response
