"""Prometheus scrape endpoint for request and booking metrics."""

from fastapi import APIRouter, Response

from ..core.observability import get_prometheus_metrics

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Request, booking, capacity and review metrics in Prometheus text format",
    response_class=Response,
    tags=["Observability"]
)
async def metrics() -> Response:
    return Response(
        content=get_prometheus_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )
