"""Pydantic models for Stack Exchange search payloads."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class Post(BaseModel):
    """One question returned by the search endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str
    score: int
    link: str
    tags: tuple[str, ...] = ()
    is_answered: bool = False

    def joined_tags(self) -> str:
        return ", ".join(self.tags)


class SearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[Post]
    has_more: bool = False
    quota_remaining: int | None = None


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Hand-off from a search task to the dispatcher; ``posts`` is ``None`` when the call failed."""

    generation: int
    posts: list[Post] | None


__all__ = ["Post", "SearchResponse", "SearchOutcome"]
