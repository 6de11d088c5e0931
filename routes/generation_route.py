from fastapi import APIRouter, HTTPException, Request

from controllers.generation_controller import generate_csv, generate_image
from models.request_models import GenerationPayload
from utils.errors import OrchestratorError

router = APIRouter(tags=["generation"])


@router.post("/generate-csv")
async def generate_csv_route(request: Request, payload: GenerationPayload):
    """Generate CSV content, using the session's analyzed data when present."""
    try:
        return await generate_csv(request, payload.prompt, payload.session_id)
    except (HTTPException, OrchestratorError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/generate-image")
async def generate_image_route(request: Request, payload: GenerationPayload):
    """Return a textual image description; no pixels are synthesized."""
    try:
        return await generate_image(request, payload.prompt, payload.session_id)
    except (HTTPException, OrchestratorError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
