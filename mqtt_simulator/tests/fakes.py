"""
Test doubles
"""
from threading import Lock
from typing import List, Optional, Set, Tuple


class FakePublisher:
    """Publisher en memoria. Los topics en `fail_topics` retornan False."""

    def __init__(self, fail_topics: Optional[Set[str]] = None, raise_topics: Optional[Set[str]] = None):
        self.fail_topics = fail_topics or set()
        self.raise_topics = raise_topics or set()
        self.published: List[Tuple[str, bytes]] = []
        self._lock = Lock()

    def publish(self, topic: str, payload: bytes) -> bool:
        if topic in self.raise_topics:
            raise RuntimeError(f"broker exploded on {topic}")
        if topic in self.fail_topics:
            return False
        with self._lock:
            self.published.append((topic, payload))
        return True

    def payloads(self, topic: str) -> List[bytes]:
        with self._lock:
            return [p for t, p in self.published if t == topic]
