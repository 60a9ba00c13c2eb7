"""
Telemetry Sink

Fire-and-forget analytics events and error reports. A sink must never raise into
the operation that reports to it.
"""
from typing import Any, Dict, Optional

from pocket_ledger.logging_config import get_logger

logger = get_logger(__name__)


class TelemetrySink:
    """Base sink: swallows delivery failures so callers are never affected."""

    def record_event(self, name: str, parameters: Optional[Dict[str, Any]] = None) -> None:
        try:
            self._emit_event(name, parameters or {})
        except Exception:
            logger.warning(f"Dropped telemetry event '{name}'", exc_info=True)

    def record_error(self, error: BaseException, context: str) -> None:
        try:
            self._emit_error(error, context)
        except Exception:
            logger.warning(f"Dropped telemetry error report for {context}", exc_info=True)

    def _emit_event(self, name: str, parameters: Dict[str, Any]) -> None:
        raise NotImplementedError

    def _emit_error(self, error: BaseException, context: str) -> None:
        raise NotImplementedError


class LoggingTelemetrySink(TelemetrySink):
    """Default sink: writes events and errors to the application log."""

    def __init__(self, logger_name: str = "telemetry"):
        self._logger = get_logger(logger_name)

    def _emit_event(self, name: str, parameters: Dict[str, Any]) -> None:
        self._logger.info(f"event={name} params={parameters}")

    def _emit_error(self, error: BaseException, context: str) -> None:
        self._logger.error(f"error in {context}: {type(error).__name__}: {error}")

