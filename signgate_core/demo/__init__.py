"""
Demo Application
================
Quote and cache API built on signgate-core.
"""

from .app import build_demo_manager, create_demo_app
from .data import DemoDataManager, Quote

__all__ = [
    "build_demo_manager",
    "create_demo_app",
    "DemoDataManager",
    "Quote",
]
