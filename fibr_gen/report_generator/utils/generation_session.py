import logging
import time
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class GenerationSession:
    """
    Context manager to track one report generation run.
    Records processed/failed sheets, timing and the final status.
    """
    def __init__(self, config_path: Any = None, params: Optional[Dict[str, str]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.params = dict(params or {})

        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None
        self.sheets_processed: List[str] = []
        self.sheets_failed: List[str] = []
        self.output_path: Optional[Path] = None

        self.status = "pending"
        self.error_message: Optional[str] = None
        self.error_traceback: Optional[str] = None

    def __enter__(self):
        self.start_time = time.time()
        name = self.config_path.name if self.config_path else "<in-memory>"
        logger.info(f"=== Generation Session Started ({name}) ===")
        return self

    def log_success(self, sheet_name: str):
        """Log successful processing of a sheet."""
        self.sheets_processed.append(sheet_name)
        logger.info(f"Successfully processed sheet: {sheet_name}")

    def log_failure(self, sheet_name: str, error: Exception = None):
        """Log failed processing of a sheet."""
        self.sheets_failed.append(sheet_name)
        logger.error(f"Failed to process sheet {sheet_name}: {error}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - self.start_time

        if exc_type:
            self.status = "fatal"
            self.error_message = str(exc_val)
            self.error_traceback = "".join(traceback.format_exception(exc_type, exc_val, exc_tb))
            logger.critical(f"Session crashed: {self.error_message}")
            logger.debug(self.error_traceback)
        else:
            self.status = "success"

        logger.info(f"=== Generation Session Ended ({self.status}) | Duration: {self.duration:.2f}s ===")

        # Propagate exceptions
        return False

    def get_summary(self) -> Dict:
        """Return session summary."""
        return {
            "status": self.status,
            "output_path": str(self.output_path) if self.output_path else None,
            "sheets_processed": self.sheets_processed,
            "sheets_failed": self.sheets_failed,
            "duration": self.duration,
            "error_message": self.error_message,
        }
