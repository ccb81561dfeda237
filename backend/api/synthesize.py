"""POST /api/synthesize — fill a template against a database, non-interactively."""
import logging
from typing import Any, Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from config import settings
from core.db_connector import SchemaIntrospector
from core.disambiguation import AutoSelectOperator
from core.orchestrator import TemplateOrchestrator
from integrations.factory import create_suggestion_service
from models.connection import ConnectionRequest
from models.synthesis import SynthesisSummary
from models.template import TestDataTemplate

router = APIRouter()
logger = logging.getLogger(__name__)


class SynthesizeRequest(BaseModel):
    connection: ConnectionRequest
    template: TestDataTemplate
    seed: Optional[int] = None
    choice: int = Field(1, ge=0, description="Menu entry picked whenever disambiguation is needed")
    use_suggestions: bool = Field(True, description="Consult the configured suggestion service for unknown names")


class SynthesizeResponse(BaseModel):
    template: dict[str, Any]
    summary: SynthesisSummary


@router.post("/synthesize", response_model=SynthesizeResponse)
def synthesize(req: SynthesizeRequest):
    # Sync handler: FastAPI runs it in a worker thread, one engine per request
    try:
        introspector = SchemaIntrospector.from_request(req.connection)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        service = create_suggestion_service() if req.use_suggestions else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    with introspector:
        orchestrator = TemplateOrchestrator(
            introspector,
            service=service,
            operator=AutoSelectOperator(req.choice),
            seed=req.seed if req.seed is not None else settings.RANDOM_SEED,
            null_probability=settings.NULL_PROBABILITY,
            context_limit=settings.SCHEMA_CONTEXT_TABLES,
        )
        summary = orchestrator.run(req.template)

    logger.info("Synthesized %d/%d endpoints", summary.endpoints_filled, summary.endpoints_total)
    return SynthesizeResponse(template=req.template.to_json_dict(), summary=summary)
