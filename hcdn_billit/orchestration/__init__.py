"""
Orchestration package for the HCDN billit storer.

This package contains the publish queue and the storer that feeds it.
"""

from .publish_queue import PublishQueue
from .popolo_storer import PopoloStorer

__all__ = [
    "PublishQueue",
    "PopoloStorer",
]
