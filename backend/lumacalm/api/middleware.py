"""Permissive cross-origin headers.

Every response carries the same CORS headers, and preflight OPTIONS
requests are answered here with an empty body before reaching a route.
"""
from fastapi import Request, Response

from lumacalm.config import Settings, get_settings


def cors_headers(settings: Settings | None = None) -> dict[str, str]:
    settings = settings or get_settings()
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Headers": settings.cors_allow_headers,
    }


async def apply_cors_headers(request: Request, call_next) -> Response:
    headers = cors_headers()

    if request.method == "OPTIONS":
        return Response(status_code=200, headers=headers)

    response = await call_next(request)
    response.headers.update(headers)
    return response
