"""Top-level router — the forms site is served from the root path."""

from fastapi import APIRouter

from tes_forms.presentation.api.endpoints.forms import router as forms_router
from tes_forms.presentation.api.endpoints.health import router as health_router

router = APIRouter()
router.include_router(health_router)
router.include_router(forms_router)
