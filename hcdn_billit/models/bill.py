"""
Bill domain model.

Represents a bill as stored in billit, following the Popolo field
vocabulary. Built from a RawBill by the normalizer and classifier.

Responsibility: Output bill entity and its wire (JSON) representation
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Stage(str, Enum):
    """
    Canonical legislative stage of a bill.

    Values are the labels billit displays. Ordered roughly by lifecycle
    progression; PARLIAMENTARY_STATUS_LOST is terminal.
    """
    SUBMITTED = "Ingresado"
    CONSIDERING = "En consideración"
    DICTUM_ORIGIN = "Con dictámen en Cámara de Orígen"
    HALF_SANCTION = "Con media sanción"
    DICTUM_REVISORY = "Con dictámen en Cámara Revisora"
    APPROVED = "Aprobado o sancionado"
    REJECTED = "Rechazado"
    PARLIAMENTARY_STATUS_LOST = "Perdida de estado parlamentario"


class Paperwork(BaseModel):
    """Committee-stage event, built from a dictum"""

    session: Optional[str] = Field(default=None, description="Order paper")
    date: Optional[str] = Field(default=None)
    step: Optional[str] = Field(default=None, description="Dictum result text")
    stage: str = Field(default="")
    chamber: Optional[str] = Field(default=None)
    bill_id: str
    bill_uid: str
    timeline_status: str = Field(default="Indicaciones")

    model_config = ConfigDict(frozen=True)


class Directive(BaseModel):
    """Floor-stage event, built from a procedure"""

    date: Optional[str] = Field(default=None)
    step: Optional[str] = Field(default=None, description="Procedure topic")
    stage: Optional[str] = Field(default=None, description="Procedure result")
    link: str = Field(default="")
    bill_uid: str
    bill_id: str
    source: Optional[str] = Field(default=None, description="Chamber")

    model_config = ConfigDict(frozen=True)


class Bill(BaseModel):
    """
    Bill record in billit's Popolo vocabulary.

    Natural key: uid (the HCDN expediente).
    priorities, reports, documents, remarks and revisions are not scraped and
    are always sent empty so billit accepts the record.
    """

    # MARK: - Identity
    uid: str = Field(min_length=1)
    title: str
    creation_date: Optional[str] = Field(default=None)
    source: str
    initial_chamber: str
    bill_draft_link: Optional[str] = Field(default=None)

    # MARK: - Content
    subject_areas: List[str] = Field(default_factory=list)
    authors: List[str] = Field(default_factory=list)
    paperworks: List[Paperwork] = Field(default_factory=list)
    directives: List[Directive] = Field(default_factory=list)
    law_number: Optional[str] = Field(default=None, alias="lawNumber")
    stage: Stage = Field(default=Stage.SUBMITTED)
    project_type: str
    current_priority: str = Field(default="Normal")

    # MARK: - Unsupported collections
    priorities: List[Any] = Field(default_factory=list)
    reports: List[Any] = Field(default_factory=list)
    documents: List[Any] = Field(default_factory=list)
    remarks: List[Any] = Field(default_factory=list)
    revisions: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_popolo(self) -> Dict[str, Any]:
        """JSON-ready dict with billit's key names"""
        return self.model_dump(mode="json", by_alias=True)
