"""
API Client for the FPDS ATOM Feed
=================================

This module provides the async HTTP layer used to fetch award-contract
pages from the Federal Procurement Data System.

Features:
- Async HTTP requests with aiohttp
- Per-request timeout enforcement
- Exponential backoff retry logic
- Optional static request-rate cap (asyncio-throttle)
- Environment-based configuration (.env support)
"""

import aiohttp
import asyncio
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional
import logging

from asyncio_throttle import Throttler
from dotenv import load_dotenv

from .errors import GovDataError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.sam.gov/prod/federalcontractopportunities/v1/search"
DEFAULT_USER_AGENT = "govdata/0.1.0"

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class FPDSConfig:
    """Configuration for FPDS requests"""
    thread_count: int = 10  # concurrent page requests per query
    timeout: float = 30  # seconds per request
    retry_attempts: int = 3
    retry_delay: float = 1.0  # base delay in seconds
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    rate_limit: Optional[int] = None  # requests per second, None disables throttling

    def __post_init__(self):
        self.validate()

    def validate(self):
        """
        Check the settings every query depends on.

        Raises:
            GovDataError: VALIDATION naming the offending setting
        """
        if self.thread_count < 1:
            raise GovDataError.validation('thread_count', str(self.thread_count), [
                'Use at least 1 concurrent request'
            ])
        if self.retry_attempts < 1:
            raise GovDataError.validation('retry_attempts', str(self.retry_attempts), [
                'Use at least 1 attempt (1 disables retries)'
            ])

    @classmethod
    def from_env(cls) -> "FPDSConfig":
        """
        Build a configuration from environment variables.

        A ``.env`` file in the working directory is loaded first. Unset
        variables fall back to the dataclass defaults.

        Returns:
            FPDSConfig populated from GOVDATA_* variables
        """
        load_dotenv()

        defaults = cls()
        rate_limit = os.getenv('GOVDATA_RATE_LIMIT')

        return cls(
            thread_count=int(os.getenv('GOVDATA_THREAD_COUNT', defaults.thread_count)),
            timeout=float(os.getenv('GOVDATA_TIMEOUT', defaults.timeout)),
            retry_attempts=int(os.getenv('GOVDATA_RETRY_ATTEMPTS', defaults.retry_attempts)),
            retry_delay=float(os.getenv('GOVDATA_RETRY_DELAY', defaults.retry_delay)),
            base_url=os.getenv('GOVDATA_BASE_URL', defaults.base_url),
            user_agent=os.getenv('GOVDATA_USER_AGENT', defaults.user_agent),
            rate_limit=int(rate_limit) if rate_limit else None
        )


@dataclass
class HTTPResponse:
    """Minimal response shape consumed by the transport."""
    status: int
    reason: str
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class AiohttpClient:
    """
    HTTP client backed by a single aiohttp session.

    Use as an async context manager to open and close the session. Any
    object exposing the same ``get`` coroutine can be injected in its
    place (tests pass scripted fakes).
    """

    def __init__(self, timeout: Optional[float] = None, rate_limit: Optional[int] = None):
        """
        Initialize the client.

        Args:
            timeout: Session-wide total timeout in seconds
            rate_limit: Optional requests-per-second cap
        """
        self.timeout = timeout
        self.throttler = Throttler(rate_limit=rate_limit) if rate_limit else None
        self.session: Optional[aiohttp.ClientSession] = None
        self.request_count = 0

    @property
    def is_open(self) -> bool:
        return self.session is not None and not self.session.closed

    async def open(self):
        if not self.is_open:
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                connector=connector
            )

    async def close(self):
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self):
        """Async context manager entry"""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def get(self, url: str, headers: Dict[str, str]) -> HTTPResponse:
        """
        Issue a GET request and read the whole body as text.

        Raises:
            RuntimeError: If the session has not been opened
            aiohttp.ClientError: On connection-level failures
        """
        if not self.is_open:
            raise RuntimeError("AiohttpClient session is not open; use 'async with'")

        if self.throttler:
            async with self.throttler:
                return await self._get(url, headers)
        return await self._get(url, headers)

    async def _get(self, url: str, headers: Dict[str, str]) -> HTTPResponse:
        async with self.session.get(url, headers=headers) as response:
            self.request_count += 1
            text = await response.text()
            return HTTPResponse(status=response.status, reason=response.reason or "", text=text)


class RetryingTransport:
    """
    Issues single requests with a timeout and retries failed ones.

    Network failures and non-2xx statuses are retried the same way,
    including permanent 4xx statuses. An undecodable body raises PARSE
    and is not retried.
    """

    def __init__(self, http_client, config: Optional[FPDSConfig] = None, sleep: Sleeper = asyncio.sleep):
        """
        Initialize the transport.

        Args:
            http_client: Object with an async ``get(url, headers)`` returning HTTPResponse
            config: Request configuration
            sleep: Coroutine used for backoff waits
        """
        self.http_client = http_client
        self.config = config or FPDSConfig()
        self.sleep = sleep
        self.error_count = 0

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.config.user_agent,
            'Accept': 'application/xml',
            'Accept-Encoding': 'gzip, deflate'
        }

    async def fetch_once(self, url: str) -> str:
        """
        Perform one GET request.

        Args:
            url: Fully built request URL

        Returns:
            Response body as text

        Raises:
            GovDataError: REQUEST on non-2xx status, NETWORK on timeout or connection
                failure, PARSE when the body cannot be decoded
        """
        try:
            response = await asyncio.wait_for(
                self.http_client.get(url, headers=self.headers),
                timeout=self.config.timeout
            )
        except asyncio.TimeoutError as e:
            raise GovDataError.network(f"Request timeout after {self.config.timeout}s", e) from e
        except (aiohttp.ClientError, OSError) as e:
            raise GovDataError.network(f"Network request failed: {e}", e) from e
        except UnicodeDecodeError as e:
            raise GovDataError.parse(f"Response body is not valid text: {e}", e) from e

        if not response.ok:
            raise GovDataError.request(f"HTTP {response.status}: {response.reason}", response.status)

        return response.text

    async def fetch_with_retry(self, url: str) -> str:
        """
        Fetch a URL, retrying with exponential backoff.

        Args:
            url: Fully built request URL

        Returns:
            Response body as text

        Raises:
            GovDataError: The last failure, unchanged, once all attempts are used
        """
        attempts = max(1, self.config.retry_attempts)
        last_error: Optional[GovDataError] = None

        for attempt in range(1, attempts + 1):
            try:
                logger.debug(f"Attempt {attempt}/{attempts} for {url}")
                return await self.fetch_once(url)
            except GovDataError as e:
                if not e.retryable:
                    raise
                self.error_count += 1
                last_error = e

                if attempt == attempts:
                    logger.error(f"All {attempts} attempts failed for {url}: {e}")
                    break

                delay = self.config.retry_delay * (2 ** (attempt - 1))
                logger.warning(f"Attempt {attempt}/{attempts} failed for {url} ({e}). "
                               f"Waiting {delay}s before retry...")
                await self.sleep(delay)

        raise last_error
