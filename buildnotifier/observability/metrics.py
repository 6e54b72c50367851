"""Prometheus metrics definitions."""

from prometheus_client import Counter, Histogram

# Notification outcomes: filtered, delivered, non_ok, failed
NOTIFICATIONS = Counter(
    "build_notifier_notifications_total",
    "Build events handled by the notifier, by result",
    ["result"],
)

DELIVERY_LATENCY = Histogram(
    "build_notifier_delivery_latency_seconds",
    "Webhook request latency in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
