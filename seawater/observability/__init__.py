"""
Observability for the Seawater risk engine.

This module contains the loguru logging setup and the Prometheus
metrics emitted by the resolution, caching and batch layers.
"""
