"""Playwright render-session module."""

from .browser import render_session, build_launch_args, get_browser_semaphore
from .pages import configure_page, scroll_until

__all__ = [
    "render_session",
    "build_launch_args",
    "get_browser_semaphore",
    "configure_page",
    "scroll_until",
]
