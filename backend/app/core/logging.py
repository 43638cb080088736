"""
Centralized logging configuration for the API.
"""

import logging
import sys

from app.core.config import Settings


def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger once at startup.

    Args:
        settings: Application settings (uses settings.log_level)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
