"""Optimization orchestrator for single-article and batch runs."""

from .service import (
    NO_SEARCH_RESULTS_MESSAGE,
    NO_VALID_CONTENT_MESSAGE,
    OptimizationOrchestrator,
    OptimizationStage,
    check_services,
    create_orchestrator,
    run_batch,
    run_one,
)

__all__ = [
    "NO_SEARCH_RESULTS_MESSAGE",
    "NO_VALID_CONTENT_MESSAGE",
    "OptimizationOrchestrator",
    "OptimizationStage",
    "check_services",
    "create_orchestrator",
    "run_batch",
    "run_one",
]
