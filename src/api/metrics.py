import time

from prometheus_client import Counter, Histogram, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "importer_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "importer_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

LLM_COMPLETIONS_TOTAL = get_or_create_metric(
    "importer_llm_completions_total",
    "LLM completions by model and outcome",
    Counter,
    labelnames=["model", "outcome"],
)

LLM_FALLBACKS_TOTAL = get_or_create_metric(
    "importer_llm_fallbacks_total",
    "Completions retried on the fallback model",
    Counter,
)

OPERATIONS_EXECUTED_TOTAL = get_or_create_metric(
    "importer_operations_executed_total",
    "Plan operations executed against the database",
    Counter,
    labelnames=["kind", "outcome"],
)


def record_request(endpoint: str, status: str, started_at: float) -> None:
    REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
    REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(time.time() - started_at)
