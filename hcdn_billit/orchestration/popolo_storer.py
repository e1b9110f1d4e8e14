"""
Popolo storer.

Entry point used by the bill importer for every scraped bill: validates the
raw record, infers its stage, and hands the Popolo bill to the publish queue.
Storing is fire-and-forget: the importer's callback runs as soon as the bill
is queued, not when billit answers.

Responsibility: Bridge scraper output to classification and publishing
"""

from datetime import date
from typing import Any, Callable, Mapping, Optional, Union
import logging

from pydantic import ValidationError

from ..adapters.billit_client import BillitClient
from ..classification.classifier import classify
from ..config import Settings, settings as default_settings
from ..models.bill import Bill
from ..models.publish_models import PublishMetrics
from ..models.raw_bill import RawBill
from .publish_queue import PublishQueue

logger = logging.getLogger(__name__)


class PopoloStorer:
    """
    Stores scraped bills into a billit instance.

    Example:
        async with PopoloStorer.from_settings() as storer:
            storer.store(raw["file"], raw, None, lambda: None)
    """

    def __init__(
        self,
        client: BillitClient,
        pool_size: int = 2,
        today: Optional[date] = None
    ):
        """
        Initialize storer.

        Args:
            client: Billit transport
            pool_size: Concurrent publishes
            today: Fixed current date for the expiry rule (None = real date)
        """
        self.client = client
        self.today = today
        self.queue = PublishQueue(client, pool_size=pool_size)

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        today: Optional[date] = None,
        **client_kwargs: Any
    ) -> "PopoloStorer":
        """Build a storer and its client from Settings"""
        config = config or default_settings
        client = BillitClient.from_config(config.store, **client_kwargs)
        return cls(client, pool_size=config.publish.pool_size, today=today)

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    @property
    def metrics(self) -> PublishMetrics:
        return self.queue.metrics

    def to_popolo(self, data: Union[RawBill, Mapping[str, Any]]) -> Bill:
        """
        Classify a raw bill into its Popolo form.

        Raises:
            ValidationError: If the mapping is not a well-formed raw bill
        """
        raw_bill = data if isinstance(data, RawBill) else RawBill.model_validate(data)
        return classify(raw_bill, today=self.today)

    def store(
        self,
        id: str,
        data: Union[RawBill, Mapping[str, Any]],
        role: Optional[str],
        callback: Callable[[], None]
    ) -> None:
        """
        Store the specified raw bill into billit.

        Args:
            id: Bill file id, used for logging. Cannot be null or empty.
            data: Raw bill mapping (or RawBill). Cannot be null.
            role: Role of the data; unused by this storer. Can be null.
            callback: Invoked once the bill is queued or dropped. Cannot be null.
        """
        try:
            bill = self.to_popolo(data)
        except ValidationError as e:
            logger.error(f"Invalid raw bill {id}: {e}")
        else:
            try:
                self.queue.enqueue(bill)
            except RuntimeError as e:
                logger.error(f"Could not queue bill {id}: {e}")
        callback()

    async def join(self) -> None:
        """Wait for all queued bills to be published"""
        await self.queue.join()

    async def close(self) -> None:
        """Drain the queue and close the billit client"""
        await self.queue.close()
        await self.client.close()
