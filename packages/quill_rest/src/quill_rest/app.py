from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from quill_core import QuillSettings, quill_settings

from .middleware import RequestIDMiddleware

if TYPE_CHECKING:
    from .resource import ResourceDescriptor

logger = logging.getLogger(__name__)


class QuillApp(FastAPI):
    """
    Quill application wrapper for FastAPI.

    Mounts resource descriptors as API routes and, when enabled in the
    settings, scopes a request id to every request.

    Example:
        >>> app = QuillApp(settings=QuillSettings(APP_TITLE="Blog admin"))
        >>> app.add_resource(post_resource)
    """

    def __init__(
        self,
        *,
        settings: QuillSettings | None = None,
        **kwargs: Any,
    ) -> None:
        settings = settings or quill_settings
        kwargs.setdefault("title", settings.APP_TITLE)
        super().__init__(**kwargs)
        self.settings = settings
        self.resources: dict[str, ResourceDescriptor[Any]] = {}

        if settings.ENABLE_REQUEST_ID:
            self.add_middleware(RequestIDMiddleware)  # ty:ignore[invalid-argument-type]

    def add_resource(
        self, descriptor: ResourceDescriptor[Any], *, tags: list[str] | None = None
    ) -> None:
        """
        Register one route per operation of ``descriptor``, in table order.
        """
        if descriptor.name in self.resources:
            msg = f"Resource {descriptor.name!r} is already registered."
            raise ValueError(msg)

        for op in descriptor.operations:
            self.add_api_route(
                descriptor.route_path(op),
                descriptor.endpoint(op),
                methods=[op.method.upper()],
                name=f"{descriptor.name}_{op.name}",
                status_code=op.status_code,
                response_model=descriptor.response_model(op),
                summary=op.summary,
                openapi_extra=descriptor.openapi_extra(op),
                tags=tags or [descriptor.name],
            )
        self.resources[descriptor.name] = descriptor
        logger.info(
            "Mounted resource %s at %s (%d operations)",
            descriptor.name,
            descriptor.path,
            len(descriptor.operations),
        )


__all__ = ["QuillApp"]
