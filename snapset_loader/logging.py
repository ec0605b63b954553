import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

# Initialize system logger
_logger = logging.getLogger("snapset_loader")
_logger.setLevel(logging.INFO)

_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Configures console output and, optionally, a rotating log file."""
    _logger.setLevel(getattr(logging, str(level or "INFO").upper(), logging.INFO))

    if not any(getattr(h, "_snapset_console", False) for h in _logger.handlers):
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        console._snapset_console = True
        _logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # Rotating handler: 10MB per file, keep 5 backups
        if not any(
            isinstance(h, logging.handlers.RotatingFileHandler) and h.baseFilename == str(log_file.resolve())
            for h in _logger.handlers
        ):
            handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
            _logger.addHandler(handler)
    return _logger


def log_event(event: str, level: int = logging.INFO, logger: Optional[logging.Logger] = None, **fields: Any) -> None:
    """Emit one structured JSON record for machine parsing."""
    record = {"event": str(event or "").strip(), **fields}
    (logger or _logger).log(level, json.dumps(record, ensure_ascii=False, default=str))
