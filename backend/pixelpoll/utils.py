import logging
import time
from typing import Iterable, List

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def now_ts() -> float:
    return time.time()


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure basic logging for the service and return its logger."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    return logging.getLogger("pixelpoll")


def sort_standings(users: Iterable) -> List:
    # sorted() is stable, so equal points keep join order
    return sorted(users, key=lambda u: -u.points)
