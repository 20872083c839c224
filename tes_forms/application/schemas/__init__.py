from .application import (
    ApplicationListResponse,
    ApplicationResponse,
    FormPageResponse,
    FormTypeResponse,
    ListFilters,
    ValidationErrorResponse,
)

__all__ = [
    "ApplicationListResponse",
    "ApplicationResponse",
    "FormPageResponse",
    "FormTypeResponse",
    "ListFilters",
    "ValidationErrorResponse",
]
