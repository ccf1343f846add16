"""
Metrics instrumentation for the API client and view state.
Exposes Prometheus-compatible metrics through the default registry.
"""

from prometheus_client import Counter, Histogram, generate_latest

# API client metrics
api_requests = Counter(
    'campus_api_requests_total',
    'Total backend API calls',
    ['operation', 'outcome']  # success, error
)

api_latency = Histogram(
    'campus_api_request_latency_seconds',
    'Backend API call latency',
    ['operation'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Registration store metrics
registration_syncs = Counter(
    'campus_registration_store_syncs_total',
    'Registration store syncs against the server',
    ['result']  # loaded, skipped, failed, discarded
)

optimistic_updates = Counter(
    'campus_registration_optimistic_updates_total',
    'Local registration state changes applied without a refetch',
    ['action']  # register, cancel
)

# View metrics
stale_responses = Counter(
    'campus_stale_responses_discarded_total',
    'Responses dropped because the view moved on before they landed',
    ['view']
)


def metrics_snapshot() -> bytes:
    """Render all metrics in the Prometheus text format."""
    return generate_latest()


# Convenience functions for instrumentation
def record_api_call(operation: str, success: bool, duration: float):
    """Record one API call. Duration in seconds."""
    outcome = "success" if success else "error"
    api_requests.labels(operation=operation, outcome=outcome).inc()
    api_latency.labels(operation=operation).observe(duration)

def record_registration_sync(result: str):
    """Record store sync. Result: loaded, skipped, failed, discarded"""
    registration_syncs.labels(result=result).inc()

def record_optimistic_update(action: str):
    """Record a local registration change. Action: register, cancel"""
    optimistic_updates.labels(action=action).inc()

def record_stale_response(view: str):
    """Record a response discarded by a view."""
    stale_responses.labels(view=view).inc()
