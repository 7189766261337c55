"""Telemetry and observability helpers.

This package emits deterministic phase logs for conversion runs.
"""

from .logger import RunLogger

__all__ = ["RunLogger"]
