"""
Observability module for the reward engine.

This module provides:
- Metrics collection with Prometheus
"""

__all__ = ["metrics"]
