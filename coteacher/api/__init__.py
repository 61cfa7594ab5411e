"""CoTeacher API layer -- routes, schemas, and middleware."""

from coteacher.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from coteacher.api.routes import router
from coteacher.api.schemas import (
    CourseChatRequest,
    CourseChatResponse,
    ErrorResponse,
    HealthResponse,
    IndexMaterialRequest,
    IndexMaterialResponse,
    TranscribeRequest,
    TranscribeResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "register_exception_handlers",
    "router",
    "CourseChatRequest",
    "CourseChatResponse",
    "ErrorResponse",
    "HealthResponse",
    "IndexMaterialRequest",
    "IndexMaterialResponse",
    "TranscribeRequest",
    "TranscribeResponse",
]
