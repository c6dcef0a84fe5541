"""DRF exception handler.

Views translate domain exceptions themselves. Anything that reaches this
handler and is not a DRF ``APIException`` (or ``Http404`` /
``PermissionDenied``) is unexpected: it is logged with its traceback and
answered with an opaque 500 so internals never leak to clients.
"""

from __future__ import annotations

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_DETAIL = "Internal server error."


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        "api.unhandled_exception",
        view=view.__class__.__name__ if view else None,
        error_type=type(exc).__name__,
    )
    return Response(
        {"detail": INTERNAL_ERROR_DETAIL},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
