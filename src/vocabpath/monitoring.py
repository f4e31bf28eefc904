"""Monitoring configuration for the vocabulary engine."""
from prometheus_client import Counter, start_http_server

# Scheduler metrics
reviews_processed = Counter(
    "vocabpath_reviews_total",
    "Total number of recall outcomes processed by the scheduler",
    ["outcome"],
)

# Learning path metrics
stage_transitions = Counter(
    "vocabpath_stage_transitions_total",
    "Total number of learning stage advances",
    ["stage"],
)

# Question metrics
questions_generated = Counter(
    "vocabpath_questions_generated_total",
    "Total number of quiz questions generated",
    ["question_type"],
)

answers_validated = Counter(
    "vocabpath_answers_validated_total",
    "Total number of answers validated",
    ["result"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
