"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class UnknownFormTypeError(ValueError):
    """Raised when a form type outside the closed set is requested."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown form type: {value!r}")


class IncompleteApplicationError(Exception):
    """Raised when a stored application fails export-time (strict) validation."""

    def __init__(self, record_id: str, errors: dict[str, str]):
        self.record_id = record_id
        self.errors = errors
        missing = ", ".join(sorted(errors))
        super().__init__(f"Application '{record_id}' is incomplete: {missing}")


class PdfRenderError(Exception):
    """Raised when the PDF engine cannot launch or a render fails midway."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Failed to generate PDF: {message}")
