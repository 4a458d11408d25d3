from collections import deque
from typing import Deque, Optional, Set
from urllib.parse import urldefrag

from service_scout.features.discovery.schemas.discovery import CrawlRequest
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)


class RequestFrontier:
    """
    FIFO queue of pending crawl requests for one run.

    max_requests caps how many requests are ever accepted, seeds included,
    across every seed of the run. URLs are deduplicated with the fragment
    stripped, so a URL is crawled at most once per run.
    """

    def __init__(self, max_requests: int):
        self.max_requests = max_requests
        self._queue: Deque[CrawlRequest] = deque()
        self._seen: Set[str] = set()
        self.accepted = 0

    @staticmethod
    def request_key(url: str) -> str:
        return urldefrag(url.strip())[0]

    @property
    def budget_exhausted(self) -> bool:
        return self.accepted >= self.max_requests

    def add(self, request: CrawlRequest) -> bool:
        """Queue request. False when it is a duplicate or the budget is spent."""
        key = self.request_key(request.url)
        if key in self._seen:
            return False
        if self.budget_exhausted:
            logger.info(f"Request budget of {self.max_requests} reached, not enqueuing {request.url}")
            return False

        self._seen.add(key)
        self._queue.append(request)
        self.accepted += 1
        return True

    def pop(self) -> Optional[CrawlRequest]:
        return self._queue.popleft() if self._queue else None

    def __len__(self) -> int:
        return len(self._queue)
