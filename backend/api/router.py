from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.dependencies import get_evaluation_pipeline
from config import settings
from models.requests import EvaluateRequest
from models.responses import EvaluationResult
from services.pipeline.orchestrator import EvaluationPipeline

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.get("/health")
async def health(pipeline: EvaluationPipeline = Depends(get_evaluation_pipeline)):
    return {
        "status": "ok",
        "gemini_configured": bool(settings.gemini_api_key),
        "schema_version": pipeline.rubric.schema_version,
        "cache": pipeline.cache.stats(),
    }


@router.post("/evaluate", response_model=EvaluationResult)
@limiter.limit("10/minute")
async def evaluate(
    request: Request,
    body: EvaluateRequest,
    pipeline: EvaluationPipeline = Depends(get_evaluation_pipeline),
):
    return await pipeline.evaluate(body.profile, body.mode)
