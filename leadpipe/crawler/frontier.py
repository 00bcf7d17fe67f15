from __future__ import annotations

from collections import deque
from typing import Deque, Optional, Set, Tuple

from .urls import is_interesting_path, should_skip_url

# Interesting pages are treated as one hop from the root wherever they were found.
PRIORITY_DEPTH = 1


class CrawlFrontier:
    """
    Pending URLs for one domain crawl.

    Two queues and one dequeue policy:
    - `priority`: interesting paths (contact, about, ...), always served first
    - `fifo`:     everything else as (url, depth), breadth-first

    pop() marks the URL visited before handing it out, so a page that fails
    to fetch still counts against the page budget and is never retried.
    """

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.priority: Deque[str] = deque()
        self.fifo: Deque[Tuple[str, int]] = deque()
        self.visited: Set[str] = set()
        self._queued_priority: Set[str] = set()
        self._queued_fifo: Set[str] = set()

    def __len__(self) -> int:
        return len(self.priority) + len(self.fifo)

    def seed(self, root_url: str) -> None:
        self.fifo.append((root_url, 0))
        self._queued_fifo.add(root_url)

    def pop(self) -> Optional[Tuple[str, int]]:
        """Next (url, depth) to fetch, or None when nothing eligible is left."""
        while self.priority or self.fifo:
            if self.priority:
                url, depth = self.priority.popleft(), PRIORITY_DEPTH
            else:
                url, depth = self.fifo.popleft()

            if url in self.visited or depth > self.max_depth:
                continue
            self.visited.add(url)
            return url, depth
        return None

    def add_link(self, url: str, from_depth: int) -> bool:
        """Queue a link found on a page at `from_depth`. Returns True if it was queued."""
        if url in self.visited or should_skip_url(url):
            return False

        if is_interesting_path(url):
            if url in self._queued_priority:
                return False
            self.priority.append(url)
            self._queued_priority.add(url)
            return True

        depth = from_depth + 1
        if depth > self.max_depth or url in self._queued_fifo:
            return False
        self.fifo.append((url, depth))
        self._queued_fifo.add(url)
        return True
