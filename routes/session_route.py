"""FastAPI routes for chat and session lifecycle."""

from fastapi import APIRouter, HTTPException, Request

from controllers.chat_controller import handle_chat
from controllers.session_controller import clear_history
from models.request_models import ChatPayload, SessionPayload
from utils.errors import OrchestratorError

router = APIRouter(tags=["chat"])


@router.post("/chat")
async def chat_route(request: Request, payload: ChatPayload):
	try:
		return await handle_chat(request, payload.question, payload.session_id)
	except (HTTPException, OrchestratorError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/clear-chat-history")
async def clear_chat_history_route(request: Request, payload: SessionPayload):
	try:
		return await clear_history(request, payload.session_id)
	except (HTTPException, OrchestratorError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
