import logging
from typing import Any, Awaitable, Callable, Final

from quill_core.logging import new_correlation_id, scoped_correlation_id
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Longer client values are replaced by a generated id
MAX_REQUEST_ID_LENGTH = 128


class RequestIDMiddleware:
    """
    Scopes a correlation id to each HTTP request.

    The id comes from the ``X-Request-ID`` header or is generated, is
    attached to every log line emitted while serving the request, and is
    echoed back in the response headers.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER):
        self.app: Final[ASGIApp] = app
        self.header_name: Final[str] = header_name

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[[], Awaitable[Any]],
        send: Callable[[Message], Awaitable[None]],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(self.header_name, "")
        if not request_id or len(request_id) > MAX_REQUEST_ID_LENGTH:
            request_id = new_correlation_id()

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[self.header_name] = request_id
            await send(message)

        with scoped_correlation_id(request_id):
            logger.debug("%s %s", scope["method"], scope["path"])
            await self.app(scope, receive, send_with_request_id)
