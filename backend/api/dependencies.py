"""Shared dependencies for API routes."""

from services.pipeline.orchestrator import EvaluationPipeline, get_pipeline


def get_evaluation_pipeline() -> EvaluationPipeline:
    return get_pipeline()
