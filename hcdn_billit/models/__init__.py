"""
Models package for the HCDN billit storer.

This package contains all Pydantic models for:
- Raw bills handed over by the scraper
- Popolo bills sent to billit
- Publish outcomes and metrics
"""

from .raw_bill import RawBill, RawSubscriber, RawDictum, RawProcedure
from .bill import Bill, Stage, Paperwork, Directive
from .publish_models import PublishStatus, PublishResult, PublishMetrics

__all__ = [
    "RawBill",
    "RawSubscriber",
    "RawDictum",
    "RawProcedure",
    "Bill",
    "Stage",
    "Paperwork",
    "Directive",
    "PublishStatus",
    "PublishResult",
    "PublishMetrics",
]
