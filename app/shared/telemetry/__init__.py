"""Logging setup shared by all layers."""

from app.shared.telemetry.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
