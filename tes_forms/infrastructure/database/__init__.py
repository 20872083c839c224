from .base import Base
from .connection import EngineFactory, build_engine_options, create_engine_factory
from .failures import FailureKind, classify_failure
from .models import ApplicationModel
from .resilient import ResilientDatabase
from .schema import ensure_schema

__all__ = [
    "Base",
    "EngineFactory",
    "build_engine_options",
    "create_engine_factory",
    "FailureKind",
    "classify_failure",
    "ApplicationModel",
    "ResilientDatabase",
    "ensure_schema",
]
