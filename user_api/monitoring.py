"""Prometheus metrics for the user API.

Requests are labelled by route template (``/api/users/{user_id}``), so
per-user paths never create new label values. Unmatched paths are not
recorded. Metrics stay off unless ENABLE_METRICS=true.
"""

from prometheus_fastapi_instrumentator import Instrumentator
from fastapi import FastAPI

METRICS_PATH = "/metrics"


def build_instrumentator() -> Instrumentator:
    return Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        env_var_name="ENABLE_METRICS",
        should_instrument_requests_inprogress=True,
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
        excluded_handlers=[METRICS_PATH],
    )


def setup_monitoring(app: FastAPI) -> Instrumentator:
    """Instrument app and mount the scrape endpoint (hidden from the OpenAPI schema)."""
    instrumentator = build_instrumentator()
    instrumentator.instrument(app).expose(app, endpoint=METRICS_PATH, include_in_schema=False)
    return instrumentator
