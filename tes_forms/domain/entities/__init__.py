from .application import ApplicationRecord, FormType

__all__ = [
    "ApplicationRecord",
    "FormType",
]
