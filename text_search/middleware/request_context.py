"""Request context middleware: correlation ID and client origin."""

import uuid
from typing import Callable

import logfire
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


def client_ip(request: Request) -> str:
    """Client origin: first X-Forwarded-For address or the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return ""


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attach a correlation ID and the client origin to every request.

    Both are stored in `request.state`; the correlation ID is echoed back in
    the response headers and added to the request span.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Correlation-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(self.header_name.lower()) or str(
            uuid.uuid4()
        )
        request.state.correlation_id = correlation_id
        request.state.client_ip = client_ip(request)

        with logfire.span(
            "request",
            correlation_id=correlation_id,
            client_ip=request.state.client_ip,
        ):
            response = await call_next(request)
        response.headers[self.header_name] = correlation_id
        return response
