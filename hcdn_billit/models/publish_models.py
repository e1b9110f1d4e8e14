"""
Publish outcome models.

Defines the result structures reported by the publish queue for every bill
it handles. Every enqueued bill ends in exactly one PublishResult, whatever
happened on the wire.

Responsibility: Data transfer objects for publish operations
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class PublishStatus(str, Enum):
    """
    Terminal status of a single bill publish.

    Only CREATED and UPDATED mean billit acknowledged the write.
    """
    CREATED = "created"
    UPDATED = "updated"
    UNEXPECTED_STATUS = "unexpected_status"  # Write answered without redirect
    SERVER_ERROR = "server_error"  # 5xx on the existence check
    CONNECTION_ERROR = "connection_error"
    FAILED = "failed"  # Unexpected exception inside the worker

    @property
    def succeeded(self) -> bool:
        return self in (PublishStatus.CREATED, PublishStatus.UPDATED)


class PublishResult(BaseModel):
    """
    Outcome of publishing one bill.

    Captures context needed for debugging and alerting.
    """
    uid: str = Field(description="Bill uid")
    status: PublishStatus
    method: Optional[str] = Field(
        default=None,
        description="Write method issued (PUT/POST); None if no write happened"
    )
    status_code: Optional[int] = Field(
        default=None,
        description="HTTP status of the last response received"
    )
    message: Optional[str] = Field(default=None)
    finished_at: datetime = Field(default_factory=datetime.utcnow)


class PublishMetrics(BaseModel):
    """
    Running counters for a publish queue.

    Used for monitoring and the CLI summary.
    """
    enqueued: int = Field(default=0, ge=0)
    published: int = Field(default=0, ge=0, description="CREATED or UPDATED")
    failed: int = Field(default=0, ge=0)
    by_status: Dict[PublishStatus, int] = Field(default_factory=dict)

    def record(self, result: PublishResult) -> None:
        """Count a terminal result"""
        if result.status.succeeded:
            self.published += 1
        else:
            self.failed += 1
        self.by_status[result.status] = self.by_status.get(result.status, 0) + 1
