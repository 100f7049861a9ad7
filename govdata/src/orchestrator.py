"""
Fetch Orchestrator Module
Coordinates paginated FPDS queries under a bounded concurrency gate.

A single query fetches page 1, derives the page layout from it and fans
the remaining pages out concurrently. ``search_contracts`` runs many
independent queries at once and isolates their failures.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple

from .api_client import AiohttpClient, FPDSConfig, RetryingTransport, Sleeper
from .concurrency import ConcurrencyGate
from .models import ContractRecord, ContractSearchRequest, FetchMetadata, PaginationState
from .processor import FieldMapper
from .validator import build_query_string, validate_search_params
from .xml_processor import XMLProcessor

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class FetchStatus(Enum):
    """Fetch execution status."""
    IDLE = "idle"
    FETCHING_FIRST_PAGE = "fetching_first_page"
    FETCHING_REMAINING_PAGES = "fetching_remaining_pages"
    DONE = "done"
    FAILED = "failed"


class FPDSRequest:
    """
    One FPDS search, fetched page by page.

    Search parameters are validated on construction, so an invalid query
    fails before any request is sent.
    """

    def __init__(
        self,
        params: Mapping[str, Any],
        config: Optional[FPDSConfig] = None,
        http_client=None,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock = datetime.now
    ):
        """
        Initialize the request.

        Args:
            params: Search parameters keyed by FPDS field name
            config: Request configuration
            http_client: Optional HTTP client; an AiohttpClient is created when omitted
            sleep: Coroutine used for retry backoff
            clock: Time source for fetch metadata

        Raises:
            GovDataError: VALIDATION for malformed parameters
        """
        self.params = MappingProxyType(dict(params))
        self.config = config or FPDSConfig()

        validate_search_params(self.params)

        self._owns_client = http_client is None
        self.http_client = http_client or AiohttpClient(
            timeout=self.config.timeout,
            rate_limit=self.config.rate_limit
        )
        self.transport = RetryingTransport(self.http_client, self.config, sleep=sleep)
        self.gate = ConcurrencyGate(self.config.thread_count)
        self.xml_processor = XMLProcessor()
        self.clock = clock

        self.status = FetchStatus.IDLE
        self.metadata = FetchMetadata(
            search_url=self.build_search_url(),
            request_time=self.clock()
        )

    async def __aenter__(self):
        if self._owns_client:
            await self.http_client.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_client:
            await self.http_client.close()

    @asynccontextmanager
    async def _client_session(self):
        """Open an owned client for the duration of one public call."""
        if not self._owns_client or self.http_client.is_open:
            yield
            return

        async with self.http_client:
            yield

    def build_search_url(self, page: Optional[int] = None) -> str:
        """
        Build the request URL for this search.

        Args:
            page: Optional page number appended as ``page=N``

        Returns:
            Full URL
        """
        params: Dict[str, Any] = dict(self.params)
        if page is not None:
            params['page'] = str(page)
        return f"{self.config.base_url}?{build_query_string(params)}"

    async def fetch_page(self, page_number: int = 1) -> List[ContractRecord]:
        """
        Fetch, normalize and map one page while holding a gate permit.
        """
        async with self.gate:
            url = self.build_search_url(page_number)
            logger.debug(f"Fetching page {page_number}: {url}")

            xml_data = await self.transport.fetch_with_retry(url)
            raw_entries = self.xml_processor.process(xml_data)

            return FieldMapper.map_records(raw_entries)

    def derive_pagination(self, first_page: List[ContractRecord]) -> PaginationState:
        """
        Page layout for this query, derived from page 1.

        The feed page does not report a total, so the first page is
        treated as the whole result.
        """
        return PaginationState(
            current_page=1,
            total_pages=1,
            total_records=len(first_page),
            records_per_page=len(first_page)
        )

    async def _get_first_page(self) -> Tuple[List[ContractRecord], PaginationState]:
        self.status = FetchStatus.FETCHING_FIRST_PAGE
        records = await self.fetch_page(1)

        pagination = self.derive_pagination(records)
        self.metadata.pagination = pagination
        logger.info(f"First page returned {len(records)} records "
                    f"({pagination.total_pages} page(s) in total)")

        return records, pagination

    def _launch_remaining_pages(self, pagination: PaginationState) -> List[asyncio.Task]:
        self.status = FetchStatus.FETCHING_REMAINING_PAGES
        return [
            asyncio.ensure_future(self.fetch_page(page))
            for page in range(2, pagination.total_pages + 1)
        ]

    def _finish(self, start_time: datetime, status: FetchStatus):
        self.status = status
        self.metadata.response_time = self.clock()
        self.metadata.duration = (self.metadata.response_time - start_time).total_seconds()

    async def get_data(self) -> List[ContractRecord]:
        """
        Fetch every page of the search.

        Remaining pages run concurrently; the result is always in page
        order. If any page fails after its retries, the first failing
        page's error is raised and all page results are discarded.

        Returns:
            List of ContractRecord
        """
        start_time = self.clock()
        self.metadata.request_time = start_time

        async with self._client_session():
            try:
                first_page, pagination = await self._get_first_page()

                if pagination.total_pages <= 1:
                    self._finish(start_time, FetchStatus.DONE)
                    return first_page

                tasks = self._launch_remaining_pages(pagination)
                results = await asyncio.gather(*tasks, return_exceptions=True)

                for page, result in enumerate(results, start=2):
                    if isinstance(result, BaseException):
                        logger.error(f"Page {page} failed: {result}")
                        raise result

                records = list(first_page)
                for page_records in results:
                    records.extend(page_records)

                logger.info(f"Fetched {len(records)} records across {pagination.total_pages} pages")
                self._finish(start_time, FetchStatus.DONE)
                return records

            except Exception:
                self._finish(start_time, FetchStatus.FAILED)
                raise

    async def get_data_stream(self) -> AsyncIterator[List[ContractRecord]]:
        """
        Yield each page's records in page order.

        Page 1 is fetched first; later pages are fetched concurrently and
        each batch is yielded once it and all earlier pages are done.
        Closing the generator early cancels pages still in flight.
        """
        start_time = self.clock()
        self.metadata.request_time = start_time

        async with self._client_session():
            tasks: List[asyncio.Task] = []
            try:
                first_page, pagination = await self._get_first_page()
                yield first_page

                if pagination.total_pages > 1:
                    tasks = self._launch_remaining_pages(pagination)
                    for task in tasks:
                        yield await task

                self._finish(start_time, FetchStatus.DONE)

            except Exception:
                self._finish(start_time, FetchStatus.FAILED)
                raise

            finally:
                pending = [task for task in tasks if not task.done()]
                for task in pending:
                    task.cancel()
                if tasks:
                    await asyncio.gather(*tasks, return_exceptions=True)

    async def get_page(self, page_number: int) -> List[ContractRecord]:
        """Fetch a single page of the search."""
        async with self._client_session():
            return await self.fetch_page(page_number)

    @property
    def total_pages(self) -> int:
        return self.metadata.pagination.total_pages if self.metadata.pagination else 0

    @property
    def total_records(self) -> int:
        return self.metadata.pagination.total_records if self.metadata.pagination else 0

    @property
    def search_url(self) -> str:
        return self.metadata.search_url

    @property
    def request_metadata(self) -> Dict[str, Any]:
        return self.metadata.to_dict()

    @property
    def concurrency_info(self) -> Dict[str, int]:
        return {
            'available': self.gate.available,
            'waiting': self.gate.waiting
        }

    @staticmethod
    async def search_contracts(
        request: ContractSearchRequest,
        config: Optional[FPDSConfig] = None,
        http_client=None,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock = datetime.now
    ) -> List[ContractRecord]:
        """
        Fetch several contracts concurrently.

        Each contract number runs as its own FPDSRequest with its own
        gate. A failing contract is logged and contributes no records;
        the batch itself never fails on a per-contract error.

        Args:
            request: Contract numbers, shared date range and metadata
            config: Request configuration shared by every query
            http_client: Optional shared HTTP client
            sleep: Coroutine used for retry backoff
            clock: Time source for fetch metadata

        Returns:
            Concatenated records of all successful queries

        Raises:
            GovDataError: VALIDATION if the configuration or the shared date range is invalid
        """
        config = config or FPDSConfig()
        config.validate()
        validate_search_params({'LAST_MOD_DATE': request.date_range})

        if http_client is None:
            async with AiohttpClient(timeout=config.timeout, rate_limit=config.rate_limit) as client:
                return await FPDSRequest._run_contract_searches(request, config, client, sleep, clock)

        return await FPDSRequest._run_contract_searches(request, config, http_client, sleep, clock)

    @staticmethod
    async def _run_contract_searches(
        request: ContractSearchRequest,
        config: FPDSConfig,
        http_client,
        sleep: Sleeper,
        clock: Clock
    ) -> List[ContractRecord]:
        async def fetch_contract(contract_number: str) -> List[ContractRecord]:
            try:
                fpds_request = FPDSRequest(
                    {'PIID': contract_number, 'LAST_MOD_DATE': request.date_range},
                    config=config,
                    http_client=http_client,
                    sleep=sleep,
                    clock=clock
                )
                records = await fpds_request.get_data()
            except Exception as e:
                logger.error(f"Error fetching data for contract {contract_number}: {e}")
                return []

            if request.metadata:
                source_metadata = {**request.metadata, 'source_contract_number': contract_number}
                for record in records:
                    record.source_metadata = source_metadata

            return records

        logger.info(f"Searching {len(request.contracts)} contracts concurrently")
        results = await asyncio.gather(*(fetch_contract(number) for number in request.contracts))

        all_records: List[ContractRecord] = []
        for records in results:
            all_records.extend(records)

        logger.info(f"Contract search complete: {len(all_records)} records")
        return all_records


async def search_contracts(
    request: ContractSearchRequest,
    config: Optional[FPDSConfig] = None,
    http_client=None,
    sleep: Sleeper = asyncio.sleep,
    clock: Clock = datetime.now
) -> List[ContractRecord]:
    """Module-level shortcut for ``FPDSRequest.search_contracts``."""
    return await FPDSRequest.search_contracts(request, config, http_client, sleep=sleep, clock=clock)
