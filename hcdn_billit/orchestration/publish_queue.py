"""
Publish queue.

Bounded-concurrency queue that sends classified bills to billit. Bills are
admitted FIFO by a non-blocking enqueue and published by `pool_size` worker
tasks; completion order across workers is not guaranteed.

Per bill:
1. Existence check on the bill uid
2. Connection failure or 5xx → drop the bill (no retry at this level)
3. 200 → PUT the bill; anything else → POST it to the collection
4. A 302 answer means saved; any other status is logged with its body

Every bill ends in exactly one PublishResult and always frees its worker.

Responsibility: Schedule and run one upsert sequence per enqueued bill
"""

import asyncio
from typing import Callable, List, Optional, Tuple
import logging

import httpx

from ..adapters.billit_client import BillitClient
from ..models.bill import Bill
from ..models.publish_models import PublishMetrics, PublishResult, PublishStatus

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 2
SAVED_STATUS_CODE = 302

PublishCallback = Callable[[PublishResult], None]


class PublishQueue:
    """
    Fire-and-forget publisher for billit bills.

    Must be used from inside a running event loop: workers are started on
    the first enqueue. The queue is unbounded and never deduplicates; the
    same uid enqueued twice is published twice.

    Example:
        async with BillitClient(url) as client:
            queue = PublishQueue(client, pool_size=2)
            queue.enqueue(bill)
            await queue.close()
    """

    def __init__(self, client: BillitClient, pool_size: int = DEFAULT_POOL_SIZE):
        """
        Initialize publish queue.

        Args:
            client: Billit transport
            pool_size: Maximum concurrent in-flight publishes
        """
        if pool_size < 1:
            raise ValueError("Pool size must be at least 1")

        self.client = client
        self.pool_size = pool_size
        self.metrics = PublishMetrics()

        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []

        logger.info(f"PublishQueue initialized with pool size {pool_size}")

    @property
    def pending(self) -> int:
        """Bills admitted but not yet picked by a worker"""
        return self._queue.qsize() if self._queue else 0

    def enqueue(self, bill: Bill, callback: Optional[PublishCallback] = None) -> None:
        """
        Admit a bill for publishing and return immediately.

        Args:
            bill: Bill to publish; the queue owns it until published
            callback: Optional hook called with the bill's PublishResult

        Raises:
            RuntimeError: If called outside a running event loop
        """
        self._ensure_started()
        self._queue.put_nowait((bill, callback))
        self.metrics.enqueued += 1
        logger.debug(f"Enqueued bill {bill.uid} ({self.pending} pending)")

    async def join(self) -> None:
        """Wait until every admitted bill reached a terminal status"""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Drain the queue and stop the workers"""
        await self.join()
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
        logger.info(
            f"PublishQueue closed: published={self.metrics.published}, "
            f"failed={self.metrics.failed}"
        )

    def _ensure_started(self) -> None:
        if self._queue is not None:
            return
        # Raises RuntimeError outside a running loop, before any state changes
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        workers = [
            loop.create_task(self._worker(index, queue), name=f"billit-publisher-{index}")
            for index in range(self.pool_size)
        ]
        self._queue = queue
        self._workers = workers

    async def _worker(self, index: int, queue: asyncio.Queue) -> None:
        while True:
            item: Tuple[Bill, Optional[PublishCallback]] = await queue.get()
            bill, callback = item
            try:
                result = await self._publish_safely(bill)
                self.metrics.record(result)
                if callback is not None:
                    try:
                        callback(result)
                    except Exception as e:
                        logger.error(
                            f"Publish callback failed for bill {bill.uid}: {e}",
                            exc_info=True
                        )
            finally:
                queue.task_done()
                # Drop the reference so the bill can be collected
                del bill, item
                if queue.empty():
                    logger.info(f"Publish queue empty (worker {index})")

    async def _publish_safely(self, bill: Bill) -> PublishResult:
        try:
            return await self.publish(bill)
        except Exception as e:
            logger.error(f"Unexpected error publishing bill {bill.uid}: {e}", exc_info=True)
            return PublishResult(
                uid=bill.uid,
                status=PublishStatus.FAILED,
                message=str(e),
            )

    async def publish(self, bill: Bill) -> PublishResult:
        """
        Run the existence-check-then-write sequence for one bill.

        Args:
            bill: Bill to upsert

        Returns:
            Terminal PublishResult; transport problems are reported, not raised
        """
        uid = bill.uid

        try:
            response = await self.client.exists(uid)
        except httpx.TransportError as e:
            logger.error(f"Connection error checking bill {uid} at {self.client.bills_url}: {e}")
            return PublishResult(
                uid=uid,
                status=PublishStatus.CONNECTION_ERROR,
                message=str(e),
            )

        if response.status_code >= 500:
            logger.error(f"Server error {response.status_code} checking bill {uid}")
            return PublishResult(
                uid=uid,
                status=PublishStatus.SERVER_ERROR,
                status_code=response.status_code,
                message=response.text,
            )

        if response.status_code == 200:
            method, write, saved_status = "PUT", self.client.update, PublishStatus.UPDATED
        else:
            method, write, saved_status = "POST", self.client.create, PublishStatus.CREATED

        try:
            response = await write(bill)
        except httpx.TransportError as e:
            logger.error(f"Connection error on {method} for bill {uid}: {e}")
            return PublishResult(
                uid=uid,
                status=PublishStatus.CONNECTION_ERROR,
                method=method,
                message=str(e),
            )

        if response.status_code == SAVED_STATUS_CODE:
            logger.info(f"Document saved: {uid} {method} {response.status_code}")
            return PublishResult(
                uid=uid,
                status=saved_status,
                method=method,
                status_code=response.status_code,
            )

        logger.error(
            f"Error saving bill {uid}: {method} {self.client.bills_url} "
            f"answered {response.status_code}"
        )
        logger.error(response.text)
        return PublishResult(
            uid=uid,
            status=PublishStatus.UNEXPECTED_STATUS,
            method=method,
            status_code=response.status_code,
            message=response.text,
        )
