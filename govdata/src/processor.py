"""
Data Processor Module
Projects flattened FPDS feed entries onto ContractRecord objects.
"""

import hashlib
import logging
from typing import Any, Dict, List, Mapping, Optional

from .field_mappings import CONTRACT_FIELD_MAP, get_field_mappings
from .models import ContractRecord
from .validator import clean_text, convert_boolean_to_string, parse_float_safe, parse_int_safe
from .xml_processor import PATH_DELIMITER, TEXT_NODE_NAME

logger = logging.getLogger(__name__)


class FieldMapper:
    """
    Map flattened feed entries to ContractRecord.

    Mapping never fails: missing text fields become "", missing or
    non-numeric amounts become 0 and unknown flag values become "No".
    """

    @staticmethod
    def lookup(raw_entry: Mapping[str, Any], path_key: str) -> Any:
        """
        Get the value stored under a path-key.

        Elements that carry attributes keep their text under ``#text``;
        that text is used when the bare path-key is absent.
        """
        value = raw_entry.get(path_key)
        if value is None:
            value = raw_entry.get(f"{path_key}{PATH_DELIMITER}{TEXT_NODE_NAME}")
        return value

    @classmethod
    def text(cls, raw_entry: Mapping[str, Any], field_name: str) -> str:
        return clean_text(cls.lookup(raw_entry, CONTRACT_FIELD_MAP[field_name]))

    @classmethod
    def map_record(cls, raw_entry: Mapping[str, Any], source_metadata: Optional[Dict[str, Any]] = None) -> ContractRecord:
        """
        Build one ContractRecord from a flattened entry.

        Args:
            raw_entry: Path-key -> value mapping for one feed entry
            source_metadata: Optional metadata attached to the record

        Returns:
            ContractRecord
        """
        def value(field_name: str) -> Any:
            return cls.lookup(raw_entry, CONTRACT_FIELD_MAP[field_name])

        contract_number = cls.text(raw_entry, 'contract_number')
        award_date = cls.text(raw_entry, 'award_date')

        return ContractRecord(
            contract_hash=cls.generate_contract_hash(contract_number, award_date),
            contract_number=contract_number,
            title=cls.text(raw_entry, 'title'),
            link=cls.text(raw_entry, 'link'),
            award_date=award_date,
            award_amount=parse_float_safe(value('award_amount')),
            total_potential_value=parse_float_safe(value('total_potential_value')),
            contract_type=cls.text(raw_entry, 'contract_type'),
            project_description=cls.text(raw_entry, 'project_description'),
            naics_code=cls.text(raw_entry, 'naics_code'),
            naics_description=cls.text(raw_entry, 'naics_description'),
            psc_code=cls.text(raw_entry, 'psc_code'),
            psc_description=cls.text(raw_entry, 'psc_description'),

            contracting_agency=cls.text(raw_entry, 'contracting_agency'),
            contracting_office_code=cls.text(raw_entry, 'contracting_office_code'),
            contracting_office_name=cls.text(raw_entry, 'contracting_office_name'),

            vendor_name=cls.text(raw_entry, 'vendor_name'),
            vendor_uei=cls.text(raw_entry, 'vendor_uei'),
            business_size=cls.text(raw_entry, 'business_size'),
            vendor_city=cls.text(raw_entry, 'vendor_city'),
            vendor_state=cls.text(raw_entry, 'vendor_state'),
            sdvosb_status=convert_boolean_to_string(value('sdvosb_status')),
            small_business_status=convert_boolean_to_string(value('small_business_status')),
            women_owned_status=convert_boolean_to_string(value('women_owned_status')),

            competition_extent=cls.text(raw_entry, 'competition_extent'),
            set_aside_type=cls.text(raw_entry, 'set_aside_type'),
            number_of_offers=parse_int_safe(value('number_of_offers')),
            solicitation_procedure=cls.text(raw_entry, 'solicitation_procedure'),

            start_date=cls.text(raw_entry, 'start_date'),
            end_date=cls.text(raw_entry, 'end_date'),
            performance_state=cls.text(raw_entry, 'performance_state'),
            performance_city=cls.text(raw_entry, 'performance_city'),

            parent_contract_id=cls.text(raw_entry, 'parent_contract_id'),
            parent_contract_type=cls.text(raw_entry, 'parent_contract_type'),

            source_metadata=source_metadata
        )

    @staticmethod
    def generate_contract_hash(contract_number: str, award_date: str) -> str:
        """
        SHA-256 hex digest of ``contract_number:award_date``.

        Used by consumers to deduplicate records across fetches.
        """
        hash_string = f"{contract_number}:{award_date}"
        return hashlib.sha256(hash_string.encode('utf-8')).hexdigest()

    @classmethod
    def map_records(cls, raw_entries: List[Mapping[str, Any]],
                    source_metadata: Optional[Dict[str, Any]] = None) -> List[ContractRecord]:
        """Map entries in order; every record shares the same metadata object."""
        return [cls.map_record(entry, source_metadata) for entry in raw_entries]

    @staticmethod
    def get_field_mappings() -> Dict[str, str]:
        return get_field_mappings()
