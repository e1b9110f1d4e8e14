"""
Stage inference rules.

Each rule is a pure function (bill, raw_bill, context) -> Optional[Stage].
Rules run in RULES order and the last rule returning a stage wins, so a
later rule overrides everything before it:

1. submitted    every bill starts as SUBMITTED
2. dictum       committee dictums (same chamber or the other one)
3. directive    floor procedures, matched against DIRECTIVE_STAGES
4. law number   an enacted bill is APPROVED
5. expiry       bills past their parliamentary period lose status

Expiry runs after the law number rule, so an enacted bill older than its
period ends up PARLIAMENTARY_STATUS_LOST.

Responsibility: Chamber-aware keyword rules mapping events to stages
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
import logging

from ..models.bill import Bill, Directive, Stage
from ..models.raw_bill import RawBill
from ..utils.dates import parse_date

logger = logging.getLogger(__name__)


class ChamberRelation(str, Enum):
    """Where an event happened relative to the bill's origin chamber"""
    ORIGIN = "origin"
    REVISORY = "revisory"


# Bills last two years, three once half-sanctioned in a later year.
BASE_PROJECT_DURATION = 2
HALF_SANCTION_PROJECT_DURATION = 3

# Bills created before March belong to the previous parliamentary period.
# March bills start their own period; the legacy importer, reading a 0-based
# month, also moved March back one year.
PERIOD_START_MONTH = 3
# A bill reaching its last year lapses from this month on.
EXPIRY_MONTH = 4

# Steps that make a directive's stage relevant.
STAGE_STEPS: Dict[ChamberRelation, Tuple[str, ...]] = {
    ChamberRelation.ORIGIN: ("CONSIDERACION", "ARTICULO 114", "ARTICULO 204"),
    ChamberRelation.REVISORY: ("CONSIDERACION",),
}

# Co-sponsoring requests, "sobre tablas" motions and special session calls.
IGNORED_STEPS: Tuple[str, ...] = (
    "SOLICITUD DE SER COFIRMANTE",
    "TABLAS",
    "SESION ESPECIAL",
)

HALF_SANCTION_RESULT = "MEDIA SANCION"

# (chamber relation, directive stage) -> bill stage
DIRECTIVE_STAGES: Dict[Tuple[ChamberRelation, Optional[str]], Stage] = {
    (ChamberRelation.ORIGIN, HALF_SANCTION_RESULT): Stage.HALF_SANCTION,
    (ChamberRelation.ORIGIN, "SANCIONADO"): Stage.APPROVED,
    (ChamberRelation.ORIGIN, "APROBADO"): Stage.APPROVED,
    (ChamberRelation.ORIGIN, "RECHAZADO"): Stage.REJECTED,
    (ChamberRelation.ORIGIN, ""): Stage.CONSIDERING,
    (ChamberRelation.REVISORY, HALF_SANCTION_RESULT): Stage.HALF_SANCTION,
    (ChamberRelation.REVISORY, "SANCIONADO"): Stage.APPROVED,
    (ChamberRelation.REVISORY, "APROBADO"): Stage.APPROVED,
    (ChamberRelation.REVISORY, "RECHAZADO"): Stage.REJECTED,
    # Resolutions considered and archived in the revisory chamber passed
    (ChamberRelation.REVISORY, "ARCHIVADO"): Stage.APPROVED,
    (ChamberRelation.REVISORY, None): Stage.CONSIDERING,
}


@dataclass(frozen=True)
class ClassificationContext:
    """Inputs shared by all rules for one bill"""
    today: date
    creation_date: Optional[date]

    @property
    def creation_year(self) -> Optional[int]:
        return self.creation_date.year if self.creation_date else None


Rule = Callable[[Bill, RawBill, ClassificationContext], Optional[Stage]]


def same_chamber(chamber: Optional[str], origin: Optional[str]) -> bool:
    """Compare chamber labels ignoring case and surrounding blanks"""
    if not chamber or not origin:
        return False
    return chamber.strip().casefold() == origin.strip().casefold()


def chamber_relation(bill: Bill, directive: Directive) -> ChamberRelation:
    if same_chamber(directive.source, bill.source):
        return ChamberRelation.ORIGIN
    return ChamberRelation.REVISORY


def is_stage_step(relation: ChamberRelation, step: Optional[str]) -> bool:
    """Check if a directive step carries a stage-relevant outcome"""
    return any(keyword in (step or "") for keyword in STAGE_STEPS[relation])


def directive_stage(bill: Bill, directive: Directive) -> Optional[Stage]:
    """
    Stage implied by a single directive, or None if it implies nothing.

    Unknown outcomes on stage-relevant steps, and unknown steps in the
    origin chamber, are logged.
    """
    relation = chamber_relation(bill, directive)

    if is_stage_step(relation, directive.step):
        stage = DIRECTIVE_STAGES.get((relation, directive.stage))
        if stage is None:
            logger.info(
                f"Directive with undetected stage in {relation.value} chamber "
                f"on bill {bill.uid}: {directive.model_dump()}"
            )
        return stage

    step = directive.step or ""
    if any(keyword in step for keyword in IGNORED_STEPS):
        return None

    if relation is ChamberRelation.ORIGIN:
        logger.info(
            f"Directive with undetected step on bill {bill.uid}: {directive.model_dump()}"
        )
    return None


def project_duration(bill: Bill, context: ClassificationContext) -> int:
    """
    Years of parliamentary status for the bill.

    Two, or three when the origin chamber gave half sanction in a year after
    the bill was created.
    """
    if context.creation_year is None:
        return BASE_PROJECT_DURATION

    for directive in bill.directives:
        if chamber_relation(bill, directive) is not ChamberRelation.ORIGIN:
            continue
        if not is_stage_step(ChamberRelation.ORIGIN, directive.step):
            continue
        if directive.stage != HALF_SANCTION_RESULT:
            continue
        directive_date = parse_date(directive.date)
        if directive_date and directive_date.year > context.creation_year:
            return HALF_SANCTION_PROJECT_DURATION

    return BASE_PROJECT_DURATION


def submitted_rule(bill: Bill, raw_bill: RawBill, context: ClassificationContext) -> Optional[Stage]:
    return Stage.SUBMITTED


def dictum_rule(bill: Bill, raw_bill: RawBill, context: ClassificationContext) -> Optional[Stage]:
    """Last dictum wins: same-chamber dictums are DICTUM_ORIGIN"""
    stage = None
    for paperwork in bill.paperworks:
        if not paperwork.chamber:
            continue
        if same_chamber(paperwork.chamber, bill.source):
            stage = Stage.DICTUM_ORIGIN
        else:
            stage = Stage.DICTUM_REVISORY
    return stage


def directive_rule(bill: Bill, raw_bill: RawBill, context: ClassificationContext) -> Optional[Stage]:
    """Last stage-bearing directive wins"""
    stage = None
    for directive in bill.directives:
        implied = directive_stage(bill, directive)
        if implied is not None:
            stage = implied
    return stage


def law_number_rule(bill: Bill, raw_bill: RawBill, context: ClassificationContext) -> Optional[Stage]:
    if raw_bill.has_law_number():
        return Stage.APPROVED
    return None


def expiry_rule(bill: Bill, raw_bill: RawBill, context: ClassificationContext) -> Optional[Stage]:
    """
    Loss of parliamentary status.

    The period starts in the creation year, or the year before for bills
    created in January or February. The bill lapses once the period plus its
    duration is behind the current year, or equal to it from April on.
    """
    if context.creation_date is None:
        return None

    period_year = context.creation_date.year
    if context.creation_date.month < PERIOD_START_MONTH:
        period_year -= 1

    expiry_year = period_year + project_duration(bill, context)
    today = context.today

    if expiry_year < today.year:
        return Stage.PARLIAMENTARY_STATUS_LOST
    if expiry_year == today.year and today.month >= EXPIRY_MONTH:
        return Stage.PARLIAMENTARY_STATUS_LOST
    return None


RULES: Tuple[Rule, ...] = (
    submitted_rule,
    dictum_rule,
    directive_rule,
    law_number_rule,
    expiry_rule,
)
