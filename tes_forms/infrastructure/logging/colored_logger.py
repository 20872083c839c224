"""Colored export logger — ANSI-colored console logging for the PDF export pipeline.

Color scheme:
    🟢 Green   — Loading the record / finished export
    🟡 Yellow  — Strict validation
    🔵 Blue    — Template rendering (HTML)
    🟣 Magenta — Rasterization (headless Chromium)
    🔴 Red     — Errors
    ⚪ Gray    — Details / timing
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_MAGENTA = "\033[95m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class ExportStage:
    """Stages of one PDF export, in the order they run."""

    PIPELINE = Stage("PIPELINE", _WHITE, "⚙️")
    LOAD = Stage("LOAD", _GREEN, "📁")
    VALIDATE = Stage("VALIDATE", _YELLOW, "🔎")
    TEMPLATE = Stage("TEMPLATE", _BLUE, "📄")
    RASTERIZE = Stage("RASTERIZE", _MAGENTA, "🖨️")
    COMPLETE = Stage("COMPLETE", _GREEN, "✅")


class PipelineLogger:
    """Color-coded logger for multi-step work such as a PDF export.

    Usage:
        log = PipelineLogger("PdfExportPipeline")
        log.step_start(ExportStage.LOAD, "Loading application", id="abc123")
        log.detail("Last saved", updated_at="2024-06-30T10:00:00+00:00")
        log.step_complete(ExportStage.LOAD, "Loaded")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: Stage, message: str, **kwargs: Any) -> None:
        head = _paint(stage.color + _BOLD, f"{stage.icon} [{stage.label}]")
        self._emit(logging.INFO, f"{head} {_paint(stage.color, message)}", kwargs)

    def step_complete(self, stage: Stage, message: str, **kwargs: Any) -> None:
        head = _paint(stage.color, f"{stage.icon} [{stage.label}]")
        self._emit(logging.INFO, f"{head} {_paint(_GREEN, '✓ ' + message)}", kwargs)

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        head = _paint(_RED + _BOLD, f"❌ [{stage.label}]")
        text = f"{head} {_paint(_RED, message)}"
        if error is not None:
            text += " " + _paint(_DIM, f"→ {type(error).__name__}: {error}")
        self._emit(logging.ERROR, text)

    def detail(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, "   " + _paint(_GRAY, f"├─ {message}"), kwargs)

    def stats(self, **kwargs: Any) -> None:
        parts = " | ".join(f"{k}: {v}" for k, v in kwargs.items())
        self._emit(logging.INFO, "   " + _paint(_GRAY, f"📈 {parts}"))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **kwargs: Any) -> Iterator[None]:
        """Log start and end of a block with its elapsed time; failures are logged and re-raised.

        Usage:
            with log.timed_step(ExportStage.RASTERIZE, "Printing A4 PDF"):
                pdf = await rasterizer.to_pdf(html)
        """
        self.step_start(stage, message, **kwargs)
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(stage, f"{message} — failed after {time.perf_counter() - started:.2f}s", error=exc)
            raise
        self.step_complete(stage, f"{message} — {time.perf_counter() - started:.2f}s")

    def _emit(self, level: int, text: str, details: dict[str, Any] | None = None) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if details:
            text += " " + _paint(_GRAY, "(" + " | ".join(f"{k}={v}" for k, v in details.items()) + ")")
        self._logger.log(level, text)


def _paint(color: str, text: str) -> str:
    return f"{color}{text}{_RESET}"
