"""
Shared helpers for the parity suite: component logging, request
throttling, fetch timing and text clipping for reports.
"""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Optional

LOG_NAMESPACE = "discover_parity"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _attach_handlers(logger: logging.Logger, log_dir: Path, console_output: bool) -> None:
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    log_dir.mkdir(parents=True, exist_ok=True)
    run_log = log_dir / f"{LOG_NAMESPACE}_{datetime.now():%Y%m%d}.log"
    file_handler = logging.FileHandler(run_log, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console_output:
        # Progress and reports go to stdout; only problems reach the console log
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.WARNING)
        console.setFormatter(formatter)
        logger.addHandler(console)


def setup_logger(
    component: str,
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    console_output: bool = True,
) -> logging.Logger:
    """
    Logger for one suite component (client, page, runner, reporting...).

    Components are children of the ``discover_parity`` logger, which owns
    the handlers, so a whole run lands in one dated file under log_dir.
    The first call decides the log directory.

    Args:
        component: Short component name, shown in every record
        log_dir: Directory for the run log (defaults to ./logs)
        level: Level for the namespace logger
        console_output: Echo warnings and errors to stdout

    Returns:
        The component logger
    """
    namespace = logging.getLogger(LOG_NAMESPACE)
    if not namespace.handlers:
        namespace.setLevel(level)
        _attach_handlers(namespace, Path(log_dir or Path.cwd() / "logs"), console_output)
    return namespace.getChild(component)


class RequestThrottle:
    """
    Spaces TMDB requests evenly so a burst never exceeds the per-second cap.

    Shared by every call a client makes; safe to use from several threads.
    """

    def __init__(self, requests_per_second: int = 35):
        self.interval = 1.0 / max(1, requests_per_second)
        self._next_slot = 0.0
        self._lock = Lock()

    def wait(self) -> float:
        """Block until the next request slot; returns the seconds slept."""
        with self._lock:
            now = time.monotonic()
            delay = max(0.0, self._next_slot - now)
            self._next_slot = max(now, self._next_slot) + self.interval
        if delay:
            time.sleep(delay)
        return delay


class Stopwatch:
    """Wall time of a with-block, kept in ``seconds`` after the block exits."""

    def __init__(self):
        self.seconds = 0.0
        self._started = 0.0

    def __enter__(self) -> "Stopwatch":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info) -> None:
        self.seconds = time.perf_counter() - self._started


def format_seconds(seconds: float) -> str:
    """Fetch timings: 850ms, 4.2s, 2m05s."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(int(round(seconds)), 60)
    return f"{minutes}m{rest:02d}s"


def clip(text: str, width: int = 50) -> str:
    """Collapse whitespace and cut to width, ending a cut with an ellipsis."""
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    return text[: width - 1].rstrip() + "…"
