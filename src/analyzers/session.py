"""Latest-photo-wins bookkeeping for asynchronous analyses."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from typing import Optional, Tuple

import numpy as np

from .pipeline import FaceAnalyzer
from .types import FaceAnalysisResult

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Track the analysis shown for one user.

    Every :meth:`submit` gets a new ticket. A finished future is applied to
    :attr:`current` only if its ticket is still the newest one; results of
    superseded photos are dropped without cancelling the work.
    """

    def __init__(self, analyzer: FaceAnalyzer, executor: Executor) -> None:
        self._analyzer = analyzer
        self._executor = executor
        self._lock = threading.Lock()
        self._latest_ticket = 0
        self._current: Optional[FaceAnalysisResult] = None

    @property
    def current(self) -> Optional[FaceAnalysisResult]:
        with self._lock:
            return self._current

    @property
    def latest_ticket(self) -> int:
        with self._lock:
            return self._latest_ticket

    def submit(self, image_bgr: np.ndarray) -> Tuple[int, "Future[FaceAnalysisResult]"]:
        with self._lock:
            self._latest_ticket += 1
            ticket = self._latest_ticket
        future = self._executor.submit(self._analyzer.analyze, image_bgr)
        future.add_done_callback(lambda f: self._on_done(ticket, f))
        return ticket, future

    def apply(self, ticket: int, result: FaceAnalysisResult) -> bool:
        """Store ``result`` if ``ticket`` is the newest submission."""

        with self._lock:
            if ticket != self._latest_ticket:
                logger.debug("Discarding stale analysis (ticket %d < %d)", ticket, self._latest_ticket)
                return False
            self._current = result
            return True

    def _on_done(self, ticket: int, future: "Future[FaceAnalysisResult]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Analysis for ticket %d failed", ticket, exc_info=exc)
            return
        self.apply(ticket, future.result())


__all__ = ["AnalysisSession"]
