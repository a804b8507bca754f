"""Daily energy usage gateway over Prometheus meter readings."""
