"""
Request metrics middleware.

Requests are labelled by their route template (``/api/activity/{entry_id}``)
rather than the raw path, so record ids do not create new series.
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match


def route_template(request: Request) -> str:
    """Path template of the route matching the request, or the raw path."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Calls ``track_func(method, endpoint, status_code, duration)`` once per request.
    """

    def __init__(self, app, track_func: Callable):
        super().__init__(app)
        self.track_func = track_func

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)

        self.track_func(
            method=request.method,
            endpoint=route_template(request),
            status_code=response.status_code,
            duration=time.perf_counter() - start_time,
        )
        return response
