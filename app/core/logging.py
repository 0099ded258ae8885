"""
Logging configuration for the checklist scoring service.
"""
import logging
import os
import sys
from typing import Optional


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Setup application logging."""

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logger = logging.getLogger("checklists")
    logger.setLevel(getattr(logging, level.upper()))

    return logger


# Global logger instance
logger = setup_logging(os.getenv("LOG_LEVEL", "INFO"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""
    if name:
        return logging.getLogger(f"checklists.{name}")
    return logger
