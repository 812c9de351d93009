"""Generators for the collector, Prometheus, Tempo and compose documents."""
