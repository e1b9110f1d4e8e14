"""
Bill normalizer.

Maps raw HCDN rows into billit records:
- "DICTAMENES DE COMISION" rows become paperworks
- "TRAMITE" rows become directives
- bill metadata becomes the Popolo bill shell (stage left as SUBMITTED)

Missing data is backfilled and logged, never raised. Raw records are not
mutated; every output is a new model instance.

Responsibility: Structural transformation from RawBill to Bill
"""

from typing import Optional
import logging

from ..models.bill import Bill, Directive, Paperwork, Stage
from ..models.raw_bill import RawBill, RawDictum, RawProcedure

logger = logging.getLogger(__name__)

MISSING_SUMMARY_TITLE = "ERROR - LEY SIN SUMARIO"
PROJECT_TYPE_PREFIX = "PROYECTO DE "
COMMUNICATED_MARKER = "COMUNICADO EL "
SENATE_SOURCE = "Senado"
SENATE_DEFAULT_TOPIC = "Votación"
PAPERWORK_TIMELINE_STATUS = "Indicaciones"


def _communicated_date(topic: Optional[str]) -> Optional[str]:
    """Pull the date out of 'COMUNICADO EL dd/mm/yyyy' topics"""
    if not topic:
        return None
    index = topic.find(COMMUNICATED_MARKER)
    if index < 0:
        return None
    start = index + len(COMMUNICATED_MARKER)
    return topic[start:start + 10] or None


def escape_title(summary: str) -> str:
    """billit treats % as a format character; send it escaped"""
    return summary.replace("%", "\\%")


def to_paperwork(raw_bill: RawBill, dictum: RawDictum) -> Paperwork:
    """
    Build a paperwork from a committee dictum.

    Dictums without date take the bill creation date. Results mentioning an
    ARTICULO are routinely undated, so those are not reported.
    """
    date = dictum.date
    if not date:
        if not (dictum.result and "ARTICULO" in dictum.result):
            logger.info(
                f"Dictum without date on bill {raw_bill.file}: {dictum.model_dump()}"
            )
        date = raw_bill.creation_time

    return Paperwork(
        session=dictum.order_paper,
        date=date,
        step=dictum.result,
        stage="",
        chamber=dictum.source,
        bill_id=raw_bill.file,
        bill_uid=raw_bill.file,
        timeline_status=PAPERWORK_TIMELINE_STATUS,
    )


def to_directive(raw_bill: RawBill, procedure: RawProcedure) -> Directive:
    """
    Build a directive from a floor procedure.

    Date falls back to the one embedded in the topic ("COMUNICADO EL ..."),
    then to the bill creation date. Senate procedures without topic are
    votes; a missing topic anywhere else is reported and left empty.
    """
    topic = procedure.topic
    if not topic:
        if procedure.source == SENATE_SOURCE:
            topic = SENATE_DEFAULT_TOPIC
        else:
            logger.error(
                f"Procedure without topic on bill {raw_bill.file}: {procedure.model_dump()}"
            )
            topic = None

    date = procedure.date
    if not date:
        date = _communicated_date(topic)
        if not date:
            logger.info(
                f"Procedure without date on bill {raw_bill.file}: {procedure.model_dump()}"
            )
            date = raw_bill.creation_time

    return Directive(
        date=date,
        step=topic,
        stage=procedure.result,
        link="",
        bill_uid=raw_bill.file,
        bill_id=raw_bill.file,
        source=procedure.source,
    )


def normalize_bill(raw_bill: RawBill) -> Bill:
    """
    Build the Popolo bill shell for a raw bill.

    The returned bill has stage SUBMITTED; stage inference is done by
    hcdn_billit.classification.classify.

    Args:
        raw_bill: Bill handed over by the scraper

    Returns:
        New Bill instance
    """
    if raw_bill.summary:
        title = escape_title(raw_bill.summary)
    else:
        logger.debug(f"Bill {raw_bill.file} has no summary")
        title = MISSING_SUMMARY_TITLE

    return Bill(
        uid=raw_bill.file,
        title=title,
        creation_date=raw_bill.creation_time,
        source=raw_bill.source,
        # TODO: Executive-branch bills ("PE") need their entry chamber resolved
        initial_chamber=raw_bill.source,
        bill_draft_link=raw_bill.text_url,
        subject_areas=list(raw_bill.committees),
        authors=[subscriber.name for subscriber in raw_bill.subscribers],
        paperworks=[to_paperwork(raw_bill, dictum) for dictum in raw_bill.dictums],
        directives=[
            to_directive(raw_bill, procedure) for procedure in raw_bill.procedures
        ],
        law_number=raw_bill.law_number,
        stage=Stage.SUBMITTED,
        project_type=raw_bill.bill_type.replace(PROJECT_TYPE_PREFIX, "", 1),
    )
