"""Abstract PDF renderer interface (port)."""

from abc import ABC, abstractmethod
from typing import Any

from tes_forms.domain.entities import FormType


class PdfRenderer(ABC):
    """Port for turning a canonical payload into print-ready PDF bytes."""

    @abstractmethod
    async def render(self, form_type: FormType, data: dict[str, Any]) -> bytes:
        """Render the fixed layout for ``form_type`` filled with ``data``.

        Raises:
            PdfRenderError: when the engine cannot launch or the render fails.
        """
        ...
