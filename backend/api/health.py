"""GET /api/health — system dependency check."""
import logging
from fastapi import APIRouter
from config import settings
from core.store import get_store
from integrations.ollama_client import OllamaClient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    store_status  = _check_store()
    ollama_status = _check_ollama()
    overall = "ok" if store_status["status"] == "up" and ollama_status["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "store":  store_status,
            "ollama": ollama_status,
        },
    }


def _check_store() -> dict:
    if get_store().ping():
        return {"status": "up", "dialect": get_store().engine.dialect.name}
    return {"status": "down", "error": "database unreachable"}


def _check_ollama() -> dict:
    ok, detail = OllamaClient().is_healthy()
    if ok:
        return {"status": "up", "model": detail, "url": settings.OLLAMA_HOST}
    return {"status": "down", "error": detail}
