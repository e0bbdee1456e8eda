"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, compiler (parse, stringify, validate,
playable), evaluator (evaluate, execute, interpolate) and play (start,
choose, undo). Every endpoint is stateless: the story source, or a
serialised session, travels with each request.
"""

from fastapi import APIRouter

from .compiler import router as compiler_router
from .evaluator import router as evaluator_router
from .play import router as play_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(compiler_router)
router.include_router(evaluator_router)
router.include_router(play_router)
