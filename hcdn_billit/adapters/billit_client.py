"""
Billit store client.

Minimal REST transport to a billit instance:
- GET  {base}/bills/{uid}.json?fields=uid   existence check
- POST {base}/bills                          create
- PUT  {base}/bills/{uid}                    update

Billit answers successful writes with a 302 redirect, so redirects are never
followed; callers inspect the raw response.

Responsibility: HTTP transport between the publish queue and billit
"""

from typing import Any, Optional
import logging

import httpx

from ..config import StoreConfig
from ..models.bill import Bill
from ..utils.rate_limiter import RateLimiter
from ..utils.retry import RetryError, retry_async


class BillitClient:
    """
    Async client for the billit bills API.

    Connection failures raise httpx.TransportError. HTTP error statuses are
    returned, not raised. With retry_enabled, connection failures and 5xx
    answers are retried with exponential backoff before giving up; by default
    each request gets a single attempt.

    Example:
        async with BillitClient("http://billit.example.org") as client:
            response = await client.exists("1234-D-2013")
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: Optional[float] = 30.0,
        rate_limit_per_second: Optional[float] = None,
        retry_enabled: bool = False,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize billit client.

        Args:
            base_url: Billit base URL (bills live under {base_url}/bills)
            timeout_seconds: Request timeout; None waits forever
            rate_limit_per_second: Maximum requests per second; None disables
            retry_enabled: Retry connection failures and 5xx answers
            max_retries: Attempts per request when retries are enabled
            base_delay: Base backoff delay in seconds
            max_delay: Backoff delay cap in seconds
            transport: Optional httpx transport (tests inject a mock)
        """
        self.base_url = base_url.rstrip("/")
        self.bills_url = f"{self.base_url}/bills"
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

        self.rate_limiter = (
            RateLimiter(rate=rate_limit_per_second, burst=1)
            if rate_limit_per_second
            else None
        )

        self.logger = logging.getLogger("adapter.billit")

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={
                "User-Agent": "hcdn-billit/1.0",
                "Accept": "application/json",
            },
            follow_redirects=False,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "BillitClient":
        """Build a client from StoreConfig settings"""
        return cls(
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            rate_limit_per_second=config.rate_limit_per_second,
            retry_enabled=config.retry_enabled,
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            transport=transport,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def bill_url(self, uid: str) -> str:
        return f"{self.bills_url}/{uid}"

    async def exists(self, uid: str) -> httpx.Response:
        """Existence check: 200 if billit knows the bill"""
        return await self._request(
            "GET",
            f"{self.bill_url(uid)}.json",
            params={"fields": "uid"},
        )

    async def create(self, bill: Bill) -> httpx.Response:
        """Create the bill in the bills collection"""
        return await self._request("POST", self.bills_url, json=bill.to_popolo())

    async def update(self, bill: Bill) -> httpx.Response:
        """Replace the bill at its own resource path"""
        return await self._request("PUT", self.bill_url(bill.uid), json=bill.to_popolo())

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Issue a request, retrying transient failures if enabled.

        Returns:
            Last response received (a 5xx one if retries ran out on it)

        Raises:
            httpx.TransportError: If no response could be obtained
        """
        async def attempt() -> httpx.Response:
            if self.rate_limiter:
                await self.rate_limiter.acquire()

            self.logger.debug(f"{method} {url}")
            response = await self.client.request(method, url, **kwargs)

            if response.status_code >= 500:
                # Surface 5xx to retry_async; unwrapped again below
                raise httpx.HTTPStatusError(
                    f"Server error {response.status_code} for {method} {url}",
                    request=response.request,
                    response=response,
                )
            return response

        try:
            return await retry_async(
                attempt,
                max_attempts=self.max_retries if self.retry_enabled else 1,
                base_delay=self.base_delay,
                max_delay=self.max_delay,
                logger_instance=self.logger,
            )
        except RetryError as e:
            last = e.last_exception
            if isinstance(last, httpx.HTTPStatusError):
                return last.response
            if last is not None:
                raise last
            raise

    async def close(self):
        """Close HTTP client connection"""
        await self.client.aclose()
