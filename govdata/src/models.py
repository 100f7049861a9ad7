"""
Data models shared by the fetcher, mapper and exporter.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class ContractRecord:
    """One normalized FPDS contract action."""

    # Essential contract information
    contract_hash: str = ''  # sha256 of contract_number:award_date
    contract_number: str = ''  # PIID
    title: str = ''
    link: str = ''
    award_date: str = ''
    award_amount: float = 0.0
    total_potential_value: float = 0.0
    contract_type: str = ''
    project_description: str = ''
    naics_code: str = ''
    naics_description: str = ''
    psc_code: str = ''
    psc_description: str = ''

    # Contracting agency
    contracting_agency: str = ''
    contracting_office_code: str = ''
    contracting_office_name: str = ''

    # Vendor
    vendor_name: str = ''
    vendor_uei: str = ''
    business_size: str = ''
    vendor_city: str = ''
    vendor_state: str = ''
    sdvosb_status: str = 'No'  # "Yes"/"No"
    small_business_status: str = 'No'  # "Yes"/"No"
    women_owned_status: str = 'No'  # "Yes"/"No"

    # Competition
    competition_extent: str = ''
    set_aside_type: str = ''
    number_of_offers: int = 0
    solicitation_procedure: str = ''

    # Performance
    start_date: str = ''
    end_date: str = ''
    performance_state: str = ''
    performance_city: str = ''

    # Referenced IDV
    parent_contract_id: str = ''
    parent_contract_type: str = ''

    source_metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Fields in output order; ``source_metadata`` only when set."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if data['source_metadata'] is None:
            del data['source_metadata']
        return data


@dataclass(frozen=True)
class PaginationState:
    """Page layout derived once from the first page of a query."""
    current_page: int
    total_pages: int
    total_records: int
    records_per_page: int


@dataclass
class FetchMetadata:
    """Observability data for one query; never read by control flow."""
    search_url: str
    request_time: datetime
    response_time: Optional[datetime] = None
    duration: Optional[float] = None  # seconds
    pagination: Optional[PaginationState] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'search_url': self.search_url,
            'request_time': self.request_time.isoformat() if self.request_time else None,
            'response_time': self.response_time.isoformat() if self.response_time else None,
            'duration_seconds': self.duration,
            'pagination': vars(self.pagination) if self.pagination else None
        }


@dataclass
class ContractSearchRequest:
    """Several independent contract lookups sharing a date range."""
    contracts: List[str] = field(default_factory=list)
    date_range: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
