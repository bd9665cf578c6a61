"""Prometheus metrics for analysis requests, cache and providers."""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

NAMESPACE = "esg_intelligence"

analyze_requests = Counter(
    f"{NAMESPACE}_analyze_requests_total",
    "Analysis requests by outcome",
    ["outcome"],
)
analyze_latency = Histogram(
    f"{NAMESPACE}_analyze_latency_seconds",
    "End-to-end analysis latency",
    ["cached"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

cache_hits = Counter(f"{NAMESPACE}_cache_hits_total", "Result cache hits", ["namespace"])
cache_misses = Counter(f"{NAMESPACE}_cache_misses_total", "Result cache misses", ["namespace"])
cache_errors = Counter(
    f"{NAMESPACE}_cache_errors_total", "Result cache store failures", ["operation"]
)
cache_swept = Counter(f"{NAMESPACE}_cache_swept_total", "Expired cache entries removed")

analytics_events = Counter(
    f"{NAMESPACE}_analytics_events_total", "Query analytics events recorded", ["success"]
)
analytics_errors = Counter(
    f"{NAMESPACE}_analytics_errors_total", "Analytics store failures", ["operation"]
)

provider_attempts = Counter(
    f"{NAMESPACE}_provider_attempts_total",
    "Provider call attempts by outcome",
    ["provider", "outcome"],
)
provider_latency = Histogram(
    f"{NAMESPACE}_provider_latency_seconds",
    "Provider response latency",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0),
)
circuit_opened = Counter(
    f"{NAMESPACE}_circuit_opened_total", "Circuit breaker open transitions", ["provider"]
)
provider_availability = Gauge(
    f"{NAMESPACE}_provider_availability_percent", "Provider availability", ["provider"]
)


def render_latest() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
