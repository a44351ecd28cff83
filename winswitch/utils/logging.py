"""Logging configuration and utilities."""

import logging
from pathlib import Path
from typing import Optional
from absl import logging as absl_logging

class LevelFormatter(logging.Formatter):
    """Short lines for INFO, source location for everything else."""

    INFO_FORMAT = '%(asctime)s %(message)s'
    DETAILED_FORMAT = '%(asctime)s [%(name)s %(filename)s:%(lineno)d] %(levelname)s: %(message)s'

    def __init__(self, datefmt: str = '%H:%M:%S'):
        super().__init__(datefmt=datefmt)
        self._info = logging.Formatter(self.INFO_FORMAT, datefmt=datefmt)
        self._detailed = logging.Formatter(self.DETAILED_FORMAT, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        formatter = self._info if record.levelno == logging.INFO else self._detailed
        return formatter.format(record)

def configure_logging(development: bool = False, log_file: Optional[Path] = None,
                      fresh: bool = False) -> logging.Logger:
    """Configure logging to write to a file (or stderr when no file is given).

    Args:
        development: Log DEBUG records from the application logger
        log_file: Destination file; parent directories are created
        fresh: Remove an existing log file before writing

    Returns:
        The configured application logger
    """
    absl_logging.set_stderrthreshold('FATAL')
    absl_logging.use_absl_handler()

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if fresh and log_file.exists():
            log_file.unlink()
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(LevelFormatter())

    # Root logger only sees warnings from third-party code
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    app_logger = logging.getLogger('winswitch')
    app_logger.setLevel(logging.DEBUG if development else logging.INFO)
    app_logger.propagate = False
    app_logger.handlers.clear()
    app_logger.addHandler(handler)

    # Capture warnings
    logging.captureWarnings(True)
    warnings_logger = logging.getLogger('py.warnings')
    warnings_logger.handlers.clear()
    warnings_logger.addHandler(handler)

    app_logger.debug("=" * 40)
    app_logger.debug("Starting new logging session")
    return app_logger

def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    # If the name starts with '__main__', replace it with 'winswitch.main'
    if name == '__main__':
        return logging.getLogger('winswitch.main')
    # Otherwise prepend 'winswitch.' if it's not already there
    if not name.startswith('winswitch.') and name != 'winswitch':
        name = f'winswitch.{name}'
    return logging.getLogger(name)
