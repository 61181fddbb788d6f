import logging
from typing import Optional


def configure_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> None:
    logging.root.handlers = []

    # stdout is reserved for the result line
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=get_log_level(log_level),
        format='[%(levelname)s] %(asctime)s - %(message)s',
        handlers=handlers
    )


def get_log_level(log_level: str) -> int:
    """
    Maps a level name (case-insensitive) to its logging constant. Unknown names fall back to INFO.
    """
    value_map = {
        'INFO': logging.INFO,
        'DEBUG': logging.DEBUG,
        'WARNING': logging.WARNING,
        'WARN': logging.WARNING,
        'ERROR': logging.ERROR,
    }

    return value_map.get(log_level.upper(), logging.INFO)
