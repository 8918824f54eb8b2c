"""
Metrics endpoint for performance monitoring.
"""
from fastapi import APIRouter
from chartwise.core.performance import PerformanceMonitor

router = APIRouter()


@router.get("/metrics")
async def get_metrics():
    """Timing statistics for upload parsing, dashboard builds and requests."""
    return {'performance': PerformanceMonitor.get_all_metrics()}
