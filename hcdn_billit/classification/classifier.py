"""
Stage classifier.

Turns a raw HCDN bill into a billit bill with its current legislative stage.
Pure: the only outside input is the current date, which callers can inject.

Responsibility: Run normalization and the ordered stage rules for one bill
"""

from datetime import date
from typing import Optional, Sequence
import logging

from ..models.bill import Bill, Stage
from ..models.raw_bill import RawBill
from ..normalize.bill_normalizer import normalize_bill
from ..utils.dates import parse_date
from .rules import RULES, ClassificationContext, Rule

logger = logging.getLogger(__name__)


def build_context(raw_bill: RawBill, today: Optional[date] = None) -> ClassificationContext:
    """Resolve the dates the rules depend on"""
    creation_date = parse_date(raw_bill.creation_time)
    if creation_date is None:
        logger.warning(
            f"Bill {raw_bill.file} has unparseable creation date "
            f"{raw_bill.creation_time!r}; skipping expiry check"
        )
    return ClassificationContext(
        today=today or date.today(),
        creation_date=creation_date,
    )


def infer_stage(
    bill: Bill,
    raw_bill: RawBill,
    context: ClassificationContext,
    rules: Sequence[Rule] = RULES
) -> Stage:
    """
    Apply rules in order; the last one returning a stage wins.

    Args:
        bill: Normalized bill (paperworks and directives built)
        raw_bill: Source record
        context: Dates shared by the rules
        rules: Rule sequence, RULES by default

    Returns:
        Inferred stage, SUBMITTED if no rule applies
    """
    stage = Stage.SUBMITTED
    for rule in rules:
        result = rule(bill, raw_bill, context)
        if result is not None:
            stage = result
    return stage


def classify(raw_bill: RawBill, today: Optional[date] = None) -> Bill:
    """
    Build the billit bill for a raw bill, with its stage inferred.

    Never raises on missing optional data; anomalies are logged.

    Args:
        raw_bill: Bill handed over by the scraper (not modified)
        today: Current date for the expiry rule (defaults to date.today())

    Returns:
        New Bill instance
    """
    bill = normalize_bill(raw_bill)
    context = build_context(raw_bill, today)
    stage = infer_stage(bill, raw_bill, context)

    logger.debug(f"Bill {bill.uid} classified as {stage.name}")
    return bill.model_copy(update={"stage": stage})
