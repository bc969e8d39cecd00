"""Monitoring configuration for the application."""
from prometheus_client import Counter, Histogram, start_http_server

# Session metrics
sessions_started = Counter(
    "vocabdrill_sessions_started_total",
    "Total number of practice sessions started",
)

sessions_completed = Counter(
    "vocabdrill_sessions_completed_total",
    "Total number of practice sessions in which every item was completed",
)

session_duration = Histogram(
    "vocabdrill_session_duration_seconds",
    "Duration of practice sessions in seconds",
    buckets=[60, 300, 600, 1800, 3600],  # 1min, 5min, 10min, 30min, 1hour
)

# Learning metrics
answers = Counter(
    "vocabdrill_answers_total",
    "Total number of answers submitted",
    ["kind", "result"],
)

level_changes = Counter(
    "vocabdrill_level_changes_total",
    "Total number of item level changes",
    ["direction"],
)

items_replenished = Counter(
    "vocabdrill_items_replenished_total",
    "Total number of items pulled into learning automatically",
    ["kind"],
)

# Item management metrics
items_added = Counter(
    "vocabdrill_items_added_total",
    "Total number of items added to the store",
    ["kind"],
)

# Database metrics
repository_errors = Counter(
    "vocabdrill_repository_errors_total",
    "Total number of failed item store operations",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
