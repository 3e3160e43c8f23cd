import logging
import sys
from pythonjsonlogger import jsonlogger

from relgraph.config import get_settings

def get_logger(name: str):
    """
    Configures and returns a logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if the logger is already configured
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO))

    # stderr keeps stdout free for the JSON graph printed by run_graph_build.py
    handler = logging.StreamHandler(sys.stderr)

    # Extra fields passed via `extra=` (nodes, links, ...) land as JSON keys
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger
