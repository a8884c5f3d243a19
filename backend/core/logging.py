import os
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
import pytz

from core.config import settings

MAIN_FORMAT = '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s'
REQUEST_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
MAX_LOG_BYTES = 1 * 1024 * 1024
LOG_BACKUPS = 3

class LocalTimeFormatter(logging.Formatter):
    """Renders record timestamps in LOG_TIMEZONE using a 12-hour clock."""

    def __init__(self, fmt=None, tz_name: str = None):
        super().__init__(fmt)
        self.tz = pytz.timezone(tz_name or settings.LOG_TIMEZONE)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, tz=self.tz)
        return stamp.strftime(datefmt or '%Y-%m-%d %I:%M:%S %p %Z')

def _rotating_handler(path: str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    handler.setFormatter(LocalTimeFormatter(fmt))
    return handler

def _reset(target: logging.Logger) -> None:
    for handler in target.handlers[:]:
        target.removeHandler(handler)

def setup_logging():
    """
    Configure the root logger (backend.log + console) and the 'requests' logger
    (requests.log only). Safe to call more than once.
    """
    os.makedirs(settings.LOG_DIRECTORY, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    _reset(root)
    root.addHandler(_rotating_handler(os.path.join(settings.LOG_DIRECTORY, "backend.log"), MAIN_FORMAT))
    console = logging.StreamHandler()
    console.setFormatter(LocalTimeFormatter(MAIN_FORMAT))
    root.addHandler(console)

    requests_log = logging.getLogger('requests')
    requests_log.setLevel(logging.INFO)
    _reset(requests_log)
    requests_log.addHandler(_rotating_handler(os.path.join(settings.LOG_DIRECTORY, "requests.log"), REQUEST_FORMAT))
    requests_log.propagate = False

    return root

def get_request_logger():
    return logging.getLogger('requests')

# Initialize logger
logger = setup_logging()
request_logger = get_request_logger()
