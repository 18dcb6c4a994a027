"""
Browser layer: Chrome driver setup, locator strategies, waits and the
discover page object.
"""

from .discover_page import DiscoverPage
from .driver import create_driver, managed_driver

__all__ = ["DiscoverPage", "create_driver", "managed_driver"]
