"""
Raw bill model.

Intermediate representation handed over by the HCDN search-page scraper.
One record per bill, with the "FIRMANTES", "GIRO A COMISIONES",
"DICTAMENES DE COMISION" and "TRAMITE" tables already split into rows.

Responsibility: Validated, immutable input to normalization and classification
"""

from datetime import date, datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.dates import to_wire_date


_RAW_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    extra="ignore",
)


def _coerce_date(value: Any) -> Any:
    """Keep scraped dates as strings; date objects become ISO strings"""
    if isinstance(value, (date, datetime)):
        return to_wire_date(value)
    return value


class RawSubscriber(BaseModel):
    """Bill signer ("firmante")"""

    name: str = Field(description="Legislator name as listed on the bill")
    party: Optional[str] = Field(default="NONE", description="Party or bloc")
    province: Optional[str] = Field(default=None, description="District")

    model_config = _RAW_MODEL_CONFIG


class RawDictum(BaseModel):
    """
    Committee opinion row ("DICTAMENES DE COMISION").

    The result text sometimes carries the date ("FECHA 10/05/2013") when the
    row has no order paper; the scraper has already pulled it out when found.
    """

    source: Optional[str] = Field(
        default=None,
        description="Chamber that issued the dictum"
    )
    order_paper: Optional[str] = Field(
        default=None,
        alias="orderPaper",
        description="Order paper number (e.g. '1234/2013')"
    )
    order_paper_url: Optional[str] = Field(default=None, alias="orderPaperUrl")
    date: Optional[str] = Field(default=None)
    result: Optional[str] = Field(default=None)

    model_config = _RAW_MODEL_CONFIG

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v):
        return _coerce_date(v)


class RawProcedure(BaseModel):
    """Floor procedure row ("TRAMITE")"""

    source: Optional[str] = Field(
        default=None,
        description="Chamber where the procedure happened"
    )
    topic: Optional[str] = Field(
        default=None,
        description="Procedural step text (e.g. 'CONSIDERACION Y APROBACION')"
    )
    date: Optional[str] = Field(default=None)
    result: Optional[str] = Field(
        default=None,
        description="Outcome text (e.g. 'MEDIA SANCION', 'RECHAZADO')"
    )

    model_config = _RAW_MODEL_CONFIG

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v):
        return _coerce_date(v)


class RawBill(BaseModel):
    """
    Bill as scraped from the HCDN project search.

    Natural key: file (expediente), e.g. "1234-D-2013".
    Accepts the scraper's camelCase keys (creationTime, lawNumber, ...) as
    well as the snake_case field names.
    """

    # MARK: - Identity
    file: str = Field(min_length=1, description="Expediente, unique bill id")
    bill_type: str = Field(
        alias="type",
        description="Bill type, e.g. 'PROYECTO DE LEY'"
    )
    source: str = Field(description="Origin chamber, e.g. 'Diputados'")
    creation_time: Optional[str] = Field(
        default=None,
        alias="creationTime",
        description="Date the bill was submitted"
    )

    # MARK: - Content
    summary: Optional[str] = Field(default=None)
    law_number: Optional[str] = Field(
        default=None,
        alias="lawNumber",
        description="Law number; present only once enacted"
    )
    text_url: Optional[str] = Field(default=None, alias="textUrl")
    published_on: Optional[str] = Field(
        default=None,
        alias="publishedOn",
        description="Parliamentary publication reference (Trámite Parlamentario)"
    )
    revision_chamber: Optional[str] = Field(default=None, alias="revisionChamber")
    revision_file: Optional[str] = Field(default=None, alias="revisionFile")

    # MARK: - Tables
    committees: List[str] = Field(default_factory=list)
    subscribers: List[RawSubscriber] = Field(default_factory=list)
    dictums: List[RawDictum] = Field(default_factory=list)
    procedures: List[RawProcedure] = Field(default_factory=list)

    model_config = _RAW_MODEL_CONFIG

    @field_validator("creation_time", mode="before")
    @classmethod
    def coerce_creation_time(cls, v):
        return _coerce_date(v)

    @field_validator("committees", "subscribers", "dictums", "procedures", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        """Scraper leaves tables as null when the section is missing"""
        return [] if v is None else v

    def has_law_number(self) -> bool:
        """Check if the bill carries a non-blank law number"""
        return bool(self.law_number and self.law_number.strip())
