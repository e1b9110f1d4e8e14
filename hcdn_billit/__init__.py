"""
HCDN billit storer.

Classifies bills scraped from the Argentine Chamber of Deputies project
search into Popolo records and publishes them to a billit instance.
"""

from .classification import classify
from .models import Bill, RawBill, Stage
from .orchestration import PopoloStorer, PublishQueue

__all__ = [
    "classify",
    "Bill",
    "RawBill",
    "Stage",
    "PopoloStorer",
    "PublishQueue",
]
