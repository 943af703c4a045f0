"""Map search results to launcher display entries."""

from __future__ import annotations

import html
from typing import Literal

from stackoverflow_plugin.domain.models import Post
from stackoverflow_plugin.launcher.protocol import IconSource, SearchEntry

ANSWERED_ICON = "emblem-checked"
UNANSWERED_ICON = "error"

DescriptionMode = Literal["tags", "link"]


def decode_entities(text: str) -> str:
    """Decode HTML entities; malformed sequences are kept as raw text."""

    return html.unescape(text)


def render_post(index: int, post: Post, description_mode: DescriptionMode = "tags") -> SearchEntry:
    if description_mode == "link":
        description = post.link
    else:
        description = decode_entities(post.joined_tags())
    return SearchEntry(
        id=index,
        name=decode_entities(post.title),
        description=description,
        icon=IconSource(name=ANSWERED_ICON if post.is_answered else UNANSWERED_ICON),
    )


__all__ = ["ANSWERED_ICON", "UNANSWERED_ICON", "DescriptionMode", "decode_entities", "render_post"]
