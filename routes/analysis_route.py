"""FastAPI routes for CSV, image, and PDF analysis."""

from fastapi import APIRouter, HTTPException, Request

from controllers.analysis_controller import analyze_csv, analyze_image, analyze_pdf
from models.request_models import CsvAnalysisPayload, ImageAnalysisPayload, PdfAnalysisPayload
from utils.errors import OrchestratorError

router = APIRouter(tags=["analysis"])


@router.post("/analyze-csv")
async def analyze_csv_route(request: Request, payload: CsvAnalysisPayload):
    """Analyze CSV text; the parsed records are kept on the session."""
    try:
        return await analyze_csv(request, payload.csv, payload.prompt, payload.session_id)
    except (HTTPException, OrchestratorError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/analyze-image")
async def analyze_image_route(request: Request, payload: ImageAnalysisPayload):
    """Analyze a base64 image; the image is kept on the session."""
    try:
        return await analyze_image(request, payload.image, payload.prompt, payload.session_id)
    except (HTTPException, OrchestratorError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/analyze-pdf")
async def analyze_pdf_route(request: Request, payload: PdfAnalysisPayload):
    """Analyze a base64 PDF; the extracted text is kept on the session."""
    try:
        return await analyze_pdf(request, payload.pdf, payload.prompt, payload.session_id)
    except (HTTPException, OrchestratorError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
