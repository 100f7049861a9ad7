"""
Search Parameter Validator Module
Validates FPDS search parameters before any request is sent and provides
the lenient value coercions used when mapping feed entries.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urlencode
import logging

from .errors import GovDataError

logger = logging.getLogger(__name__)

ParamValue = Union[str, List[str]]

_FLOAT_PREFIX = re.compile(r'^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')
_INT_PREFIX = re.compile(r'^\s*[+-]?\d+')


class SearchParamValidator:
    """
    Format checks for the FPDS search fields that have a fixed shape.
    """

    # Applied with fullmatch
    DATE_RANGE_PATTERN = re.compile(r'\[\d{4}/\d{2}/\d{2}\s*,\s*\d{4}/\d{2}/\d{2}\]')
    NAICS_PATTERN = re.compile(r'\d{6}')
    PSC_PATTERN = re.compile(r'[A-Z]\d{3}')
    AGENCY_PATTERN = re.compile(r'\d{4}')
    STATE_PATTERN = re.compile(r'[A-Z]{2}')
    ZIP_PATTERN = re.compile(r'\d{5}(-\d{4})?')

    @staticmethod
    def validate_date_range(date_range: str) -> bool:
        """
        Check the ``[YYYY/MM/DD, YYYY/MM/DD]`` range format.

        Args:
            date_range: Date range string

        Returns:
            True if the format matches
        """
        return bool(SearchParamValidator.DATE_RANGE_PATTERN.fullmatch(date_range))

    @staticmethod
    def validate_piid(piid: str) -> bool:
        return bool(piid and piid.strip())

    @staticmethod
    def validate_naics_code(naics: str) -> bool:
        return bool(SearchParamValidator.NAICS_PATTERN.fullmatch(naics))

    @staticmethod
    def validate_psc_code(psc: str) -> bool:
        return bool(SearchParamValidator.PSC_PATTERN.fullmatch(psc))

    @staticmethod
    def validate_agency_code(agency_code: str) -> bool:
        return bool(SearchParamValidator.AGENCY_PATTERN.fullmatch(agency_code))

    @staticmethod
    def validate_state_code(state_code: str) -> bool:
        """Two uppercase letters, e.g. ``VA``."""
        return bool(SearchParamValidator.STATE_PATTERN.fullmatch(state_code))

    @staticmethod
    def validate_zip_code(zip_code: str) -> bool:
        """Five digits with an optional ``-NNNN`` extension."""
        return bool(SearchParamValidator.ZIP_PATTERN.fullmatch(zip_code))

    @staticmethod
    def sanitize_search_term(term: str) -> str:
        """Strip surrounding whitespace and remove ``<`` and ``>``."""
        return term.strip().replace('<', '').replace('>', '')


# Parameter name -> (check, suggestions)
FIELD_RULES = {
    'LAST_MOD_DATE': (SearchParamValidator.validate_date_range, [
        'Use format: [YYYY/MM/DD, YYYY/MM/DD]',
        'Example: [2022/01/01, 2024/12/31]'
    ]),
    'PIID': (SearchParamValidator.validate_piid, [
        'Contract ID cannot be empty',
        'Remove any leading/trailing whitespace'
    ]),
    'REF_IDV_PIID': (SearchParamValidator.validate_piid, [
        'Contract ID cannot be empty',
        'Remove any leading/trailing whitespace'
    ]),
    'NAICS_CODE': (SearchParamValidator.validate_naics_code, [
        'NAICS code must be exactly 6 digits',
        'Example: 541511'
    ]),
    'PRINCIPAL_NAICS_CODE': (SearchParamValidator.validate_naics_code, [
        'NAICS code must be exactly 6 digits',
        'Example: 541511'
    ]),
    'PSC_CODE': (SearchParamValidator.validate_psc_code, [
        'PSC code must be 1 letter followed by 3 digits',
        'Example: R425'
    ]),
    'PRODUCT_OR_SERVICE_CODE': (SearchParamValidator.validate_psc_code, [
        'PSC code must be 1 letter followed by 3 digits',
        'Example: R425'
    ]),
    'AGENCY_CODE': (SearchParamValidator.validate_agency_code, [
        'Agency code must be exactly 4 digits',
        'Example: 9700'
    ]),
    'CONTRACTING_AGENCY_ID': (SearchParamValidator.validate_agency_code, [
        'Agency code must be exactly 4 digits',
        'Example: 9700'
    ]),
    'FUNDING_AGENCY_ID': (SearchParamValidator.validate_agency_code, [
        'Agency code must be exactly 4 digits',
        'Example: 9700'
    ]),
}


def validate_search_params(params: Mapping[str, Any]) -> None:
    """
    Validate format-sensitive search parameters.

    ``None`` values are skipped. List values are checked item by item.
    Parameters without a rule are accepted as-is.

    Args:
        params: Search parameters keyed by FPDS field name

    Raises:
        GovDataError: VALIDATION, naming the offending parameter
    """
    for key, value in params.items():
        if value is None or key not in FIELD_RULES:
            continue

        check, suggestions = FIELD_RULES[key]
        values = value if isinstance(value, (list, tuple)) else [value]

        for item in values:
            if isinstance(item, str) and not check(item):
                logger.debug(f"Rejected {key}={item!r}")
                raise GovDataError.validation(key, item, list(suggestions))


def build_query_string(params: Mapping[str, Any]) -> str:
    """
    URL-encode search parameters.

    Empty and ``None`` values are dropped. List values are repeated
    (``PIID=A&PIID=B``).

    Args:
        params: Search parameters

    Returns:
        Encoded query string (without leading ``?``)
    """
    pairs = []

    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                if item is not None and item != '':
                    pairs.append((key, str(item)))
        elif value is not None and value != '':
            pairs.append((key, str(value)))

    return urlencode(pairs)


def parse_float_safe(value: Any) -> float:
    """
    Parse the leading number of a value, returning 0 when there is none.

    Args:
        value: Raw value (string, number or anything else)

    Returns:
        Parsed float or 0.0
    """
    if not value:
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group(0)) if match else 0.0


def parse_int_safe(value: Any) -> int:
    """
    Parse the leading integer of a value, returning 0 when there is none.
    """
    if not value:
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)

    match = _INT_PREFIX.match(str(value))
    return int(match.group(0)) if match else 0


def convert_boolean_to_string(value: Any) -> str:
    """Map the feed's true representation to "Yes", anything else to "No"."""
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    return 'Yes' if value == 'true' else 'No'


def clean_text(value: Optional[Any]) -> str:
    """Render a looked-up feed value as text, with "" for missing values."""
    if value is None or value == '':
        return ''
    if isinstance(value, str):
        return value
    return str(value)
