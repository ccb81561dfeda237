"""GET /api/health — system dependency check."""
import logging
from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.db_connector import create_engine_from_request
from integrations.ollama_client import OllamaClient
from models.connection import ConnectionRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    db_status  = _check_database()
    llm_status = _check_suggestion_service()
    overall = "ok" if db_status["status"] == "up" and llm_status["status"] in ("up", "disabled") else "degraded"
    return {
        "status": overall,
        "services": {
            "database":           db_status,
            "suggestion_service": llm_status,
        },
    }


def _check_database() -> dict:
    try:
        engine = create_engine_from_request(ConnectionRequest.from_settings(settings))
        dialect = engine.dialect.name
        engine.dispose()
        return {"status": "up", "dialect": dialect}
    except (ValueError, SQLAlchemyError, ImportError) as e:
        return {"status": "down", "error": str(e)}


def _check_suggestion_service() -> dict:
    provider = settings.LLM_PROVIDER.strip().lower()
    if not provider:
        return {"status": "disabled"}
    if provider == "ollama":
        ok, detail = OllamaClient(host=settings.OLLAMA_HOST, model=settings.OLLAMA_MODEL).is_healthy()
        if ok:
            return {"status": "up", "provider": provider, "model": detail}
        return {"status": "down", "provider": provider, "error": detail}
    # Hosted providers are not contacted; report configuration only
    configured = provider != "openai" or bool(settings.OPENAI_API_KEY)
    return {"status": "up" if configured else "down", "provider": provider, "model": settings.OPENAI_MODEL}
