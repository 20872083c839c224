from .form_catalogue import FORM_DEFINITIONS, FieldKind, FieldSpec, FormDefinition, get_form_definition
from .form_validator import FormValidator, ValidationMode, ValidationResult
from .forms_service import FormsService, PdfExport, SubmissionResult, build_export_filename, sanitize_filename
from .keep_alive_service import KeepAliveService

__all__ = [
    "FORM_DEFINITIONS",
    "FieldKind",
    "FieldSpec",
    "FormDefinition",
    "get_form_definition",
    "FormValidator",
    "ValidationMode",
    "ValidationResult",
    "FormsService",
    "PdfExport",
    "SubmissionResult",
    "build_export_filename",
    "sanitize_filename",
    "KeepAliveService",
]
