"""Guarded holder for the most recently delivered search results."""

from __future__ import annotations

import threading
from typing import Callable, Sequence, TypeVar

from stackoverflow_plugin.domain.models import Post

T = TypeVar("T")


class ResultStore:
    """Owns the current result set and the search generation counter.

    Every method takes the lock for a short synchronous section only, so the
    lock is never held across an ``await``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._posts: list[Post] = []
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def replace(
        self,
        generation: int,
        posts: Sequence[Post],
        render: Callable[[int, Post], T],
    ) -> list[T] | None:
        """Swap in ``posts`` and render them, or return ``None`` if ``generation`` is stale."""

        with self._lock:
            if generation != self._generation:
                return None
            self._posts = list(posts)
            return [render(index, post) for index, post in enumerate(self._posts)]

    def render_current(self, render: Callable[[int, Post], T]) -> list[T]:
        with self._lock:
            return [render(index, post) for index, post in enumerate(self._posts)]

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def clear(self) -> int:
        """Drop held results and invalidate in-flight generations; returns the new generation."""

        with self._lock:
            self._posts = []
            self._generation += 1
            return self._generation

    def get(self, index: int) -> Post | None:
        with self._lock:
            if 0 <= index < len(self._posts):
                return self._posts[index]
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._posts)


__all__ = ["ResultStore"]
