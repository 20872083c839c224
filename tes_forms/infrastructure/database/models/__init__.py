from .application import ApplicationModel

__all__ = [
    "ApplicationModel",
]
