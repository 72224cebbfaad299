import logging
import os
import sys
from datetime import datetime

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOGGER_NAME = "docx_translate"


def _create_app_logger():
    """Create the shared application logger with a console handler"""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

    logger.propagate = False
    return logger


class FileLogger:
    """Attach one log file per translated document to the app logger"""

    def __init__(self, logger):
        self.logger = logger
        self.current_log_file = None
        self._file_handler = None

    def create_file_log(self, file_name, log_dir="log"):
        """Start a new log file for file_name, closing the previous one"""
        self.close()
        os.makedirs(log_dir, exist_ok=True)

        base_name = os.path.splitext(os.path.basename(file_name))[0]
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = os.path.join(log_dir, f"{base_name}_{timestamp}.log")

        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(handler)

        self._file_handler = handler
        self.current_log_file = log_path
        return log_path

    def close(self):
        if self._file_handler is not None:
            self.logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None
        self.current_log_file = None


app_logger = _create_app_logger()
file_logger = FileLogger(app_logger)
