from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import get_available_models
from app.models.schemas import ModelInfo, ModelsResponse

router = APIRouter(prefix="/api/models", tags=["models"])


@router.get("", response_model=ModelsResponse)
async def list_models():
    """List the generation models in the order they are tried."""
    models = get_available_models()
    return ModelsResponse(models=[ModelInfo(**m) for m in models])
