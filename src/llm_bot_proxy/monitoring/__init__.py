"""Monitoring module: best-effort AI visit telemetry."""

from .telemetry import (
    TelemetryEmitter,
    TelemetryEvent,
    build_telemetry_event,
    resolve_client_ip,
)

__all__ = [
    "TelemetryEmitter",
    "TelemetryEvent",
    "build_telemetry_event",
    "resolve_client_ip",
]
