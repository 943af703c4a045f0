"""Open links with the desktop's default handler."""

from __future__ import annotations

import webbrowser

from stackoverflow_plugin.logging import logger


def open_url(url: str) -> None:
    """Fire-and-forget browser launch; failures are logged, never raised."""

    try:
        opened = webbrowser.open_new_tab(url)
    except webbrowser.Error as exc:
        logger.error("browser_open_failed", url=url, error=str(exc))
        return
    if not opened:
        logger.warning("browser_not_available", url=url)


__all__ = ["open_url"]
