from .application_repository import SQLAlchemyApplicationRepository

__all__ = [
    "SQLAlchemyApplicationRepository",
]
