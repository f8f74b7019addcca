"""Sentry context middleware to capture request context in error reports."""

import uuid

import sentry_sdk
from starlette.types import ASGIApp, Receive, Scope, Send

from quizpot.core.logging import get_request_id

ACCOUNT_HEADER = b"x-account"


class SentryContextMiddleware:
    """
    Middleware to inject structured context into Sentry error reports.

    Captures:
    - request_id: Unique request identifier
    - account: Caller account from the X-Account header (if present)
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        account = None
        for name, value in scope.get("headers", []):
            lowered = name.lower()
            if lowered == b"x-request-id":
                request_id = value.decode("latin1")
            elif lowered == ACCOUNT_HEADER:
                account = value.decode("latin1")

        if not request_id:
            request_id = get_request_id()
        if not request_id or request_id == "no-request-id":
            request_id = str(uuid.uuid4())

        with sentry_sdk.isolation_scope() as scope_:
            scope_.set_tag("request_id", request_id)
            if account:
                scope_.set_user({"id": account})
            scope_.set_context(
                "request",
                {
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                    "request_id": request_id,
                },
            )
            await self.app(scope, receive, send)
