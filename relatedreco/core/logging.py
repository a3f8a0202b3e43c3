# relatedreco/core/logging.py
import logging
import sys
import colorlog

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Client libraries used per recommendation request (Mongo, remote ranking, LLM)
QUIET_LOGGERS = ("pymongo", "httpx", "httpcore", "openai")


def level_for(debug: bool) -> int:
    return logging.DEBUG if debug else logging.INFO


def configure_logging(level=logging.INFO, *, stream=None):
    """
    Colored single-line records on stdout for the whole process.
    Uvicorn follows the app level; QUIET_LOGGERS stay at WARNING even in debug,
    otherwise every remote ranking call logs its connection pool churn.
    """
    handler = colorlog.StreamHandler(stream or sys.stdout)
    handler.setFormatter(colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
