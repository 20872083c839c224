"""Centralized logging configuration.

Per-category levels come from Settings so that noisy loggers (SQLAlchemy
statements, httpx/httpcore, uvicorn access lines) can be tuned without
touching the database and PDF export logs. Every root handler also gets a
filter that masks passwords embedded in connection URLs.

Usage:
    from tes_forms.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, from the FastAPI lifespan
"""

import logging
import re
import sys

from tes_forms.config import Settings, get_settings

# Settings field → logger names it controls
_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_database": ("tes_forms.infrastructure.database",),
    "log_level_pdf": ("PdfExportPipeline", "tes_forms.infrastructure.pdf", "playwright"),
}

_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-z][a-z0-9+.\-]*://)(?P<user>[^:/@\s]+):(?P<password>[^@\s]+)@")
_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"


class RedactCredentialsFilter(logging.Filter):
    """Rewrite ``scheme://user:password@`` as ``scheme://user:***@`` in log output."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_credentials(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def redact_credentials(text: str) -> str:
    return _URL_CREDENTIALS.sub(r"\g<scheme>\g<user>:***@", text)


def setup_logging(settings: Settings | None = None) -> None:
    """Apply the root and per-category levels from ``settings``.

    Safe to call more than once; handlers and filters are not duplicated.
    """
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    for handler in root.handlers:
        if not any(isinstance(f, RedactCredentialsFilter) for f in handler.filters):
            handler.addFilter(RedactCredentialsFilter())

    levels = {}
    for settings_field, logger_names in _CATEGORY_MAP.items():
        raw_level = getattr(settings, settings_field)
        levels[settings_field] = raw_level
        for name in logger_names:
            logging.getLogger(name).setLevel(_parse_level(raw_level))

    logging.getLogger(__name__).debug("Logging configured — root=%s %s", settings.log_level, levels)


def _parse_level(raw: str) -> int:
    """Level name → logging constant; unknown names fall back to INFO."""
    numeric = logging.getLevelName(raw.strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO
