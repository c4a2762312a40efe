# Observability module
from ootd_service.observability.logger import log_request, is_logging_enabled
from ootd_service.observability.metrics import (
    increment_request,
    record_ai_call,
    get_metrics,
    reset_metrics,
    estimate_cost,
)
