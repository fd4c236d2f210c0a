# backend/servicebay/routes/v1/prometheus.py
"""
Prometheus metrics endpoint.

Public, following standard Prometheus practice. It exposes the metrics
collected by the measure_operation decorator and the booking, lock and
merge counters.
"""

from fastapi import APIRouter, Response

from ...monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
