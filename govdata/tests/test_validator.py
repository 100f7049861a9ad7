"""
Tests for the Search Parameter Validator module.
"""

import pytest
from urllib.parse import parse_qs

from govdata.src.errors import ErrorKind, GovDataError
from govdata.src.validator import (
    SearchParamValidator,
    build_query_string,
    clean_text,
    convert_boolean_to_string,
    parse_float_safe,
    parse_int_safe,
    validate_search_params,
)


class TestSearchParamValidator:
    """Test suite for search parameter validation."""

    @pytest.fixture
    def validator(self):
        return SearchParamValidator()

    def test_validate_date_range_valid(self, validator):
        valid_ranges = [
            "[2022/01/01, 2024/12/31]",
            "[2022/01/01,2024/12/31]",
            "[2022/01/01 ,  2024/12/31]",
        ]

        for date_range in valid_ranges:
            assert validator.validate_date_range(date_range)

    def test_validate_date_range_invalid(self, validator):
        invalid_ranges = [
            "2022/01/01-2024/12/31",
            "[2022-01-01, 2024-12-31]",
            "[2022/01/01]",
            "2022/01/01, 2024/12/31",
            "[2022/01/01, 2024/12/31]\n",
            "",
        ]

        for date_range in invalid_ranges:
            assert not validator.validate_date_range(date_range)

    def test_code_formats(self, validator):
        assert validator.validate_naics_code("541511")
        assert not validator.validate_naics_code("54151")
        assert validator.validate_psc_code("R425")
        assert not validator.validate_psc_code("r425")
        assert validator.validate_agency_code("9700")
        assert not validator.validate_agency_code("97A0")
        assert validator.validate_piid("W912DY-20-C-0001")
        assert not validator.validate_naics_code("541511\n")
        assert not validator.validate_psc_code("R425\n")
        assert not validator.validate_agency_code("9700\n")
        assert not validator.validate_piid("   ")

    def test_state_and_zip_codes(self, validator):
        assert validator.validate_state_code("VA")
        assert not validator.validate_state_code("va")
        assert not validator.validate_state_code("VA\n")
        assert validator.validate_zip_code("22201")
        assert validator.validate_zip_code("22201-1234")
        assert not validator.validate_zip_code("2220")
        assert not validator.validate_zip_code("22201-12")
        assert not validator.validate_zip_code("22201\n")

    def test_sanitize_search_term(self, validator):
        assert validator.sanitize_search_term("  <b>ACME</b> Corp ") == "bACME/b Corp"

    def test_trailing_newline_is_rejected_before_any_request(self):
        for key, value in [
            ("LAST_MOD_DATE", "[2022/01/01, 2024/12/31]\n"),
            ("NAICS_CODE", "541511\n"),
        ]:
            with pytest.raises(GovDataError) as exc_info:
                validate_search_params({key: value})
            assert exc_info.value.parameter == key

    def test_rejects_malformed_date_range(self):
        with pytest.raises(GovDataError) as exc_info:
            validate_search_params({'LAST_MOD_DATE': '2022/01/01-2024/12/31'})

        error = exc_info.value
        assert error.kind is ErrorKind.VALIDATION
        assert error.parameter == 'LAST_MOD_DATE'
        assert error.value == '2022/01/01-2024/12/31'
        assert 'Use format: [YYYY/MM/DD, YYYY/MM/DD]' in error.suggestions
        assert 'LAST_MOD_DATE' in str(error)

    def test_rejects_bad_codes(self):
        for key, value in [
            ('NAICS_CODE', '5415'),
            ('PRINCIPAL_NAICS_CODE', 'abcdef'),
            ('PSC_CODE', '4250'),
            ('AGENCY_CODE', '97'),
            ('FUNDING_AGENCY_ID', '97000'),
            ('PIID', ' '),
        ]:
            with pytest.raises(GovDataError) as exc_info:
                validate_search_params({key: value})
            assert exc_info.value.parameter == key

    def test_validates_each_list_item(self):
        validate_search_params({'PIID': ['A1', 'B2']})

        with pytest.raises(GovDataError) as exc_info:
            validate_search_params({'PIID': ['A1', '']})
        assert exc_info.value.parameter == 'PIID'

    def test_accepts_valid_and_unknown_params(self):
        validate_search_params({
            'LAST_MOD_DATE': '[2022/01/01, 2024/12/31]',
            'PIID': 'W912DY-20-C-0001',
            'NAICS_CODE': '541511',
            'VENDOR_NAME': 'anything goes',
            'SET_ASIDE_TYPE': None,
        })


class TestBuildQueryString:
    """Test suite for query string encoding."""

    def test_round_trip(self):
        params = {
            'PIID': ['W912DY-20-C-0001', 'N00024-21-C-5555'],
            'LAST_MOD_DATE': '[2022/01/01, 2024/12/31]',
            'VENDOR_NAME': 'Smith & Sons, "LLC"',
            'NAICS_CODE': '541511',
        }

        decoded = parse_qs(build_query_string(params))

        assert decoded == {
            'PIID': ['W912DY-20-C-0001', 'N00024-21-C-5555'],
            'LAST_MOD_DATE': ['[2022/01/01, 2024/12/31]'],
            'VENDOR_NAME': ['Smith & Sons, "LLC"'],
            'NAICS_CODE': ['541511'],
        }

    def test_drops_empty_values(self):
        query = build_query_string({'PIID': 'A1', 'NAICS_CODE': '', 'PSC_CODE': None, 'AGENCY_CODE': []})
        assert query == 'PIID=A1'

    def test_preserves_parameter_order(self):
        query = build_query_string({'b': '2', 'a': '1', 'page': '3'})
        assert query == 'b=2&a=1&page=3'


class TestValueCoercion:
    """Test suite for the lenient coercion helpers."""

    def test_parse_float_safe(self):
        test_cases = [
            ("125000.00", 125000.0),
            ("-42.5", -42.5),
            ("1e3", 1000.0),
            ("12abc", 12.0),
            (".5", 0.5),
            ("abc", 0.0),
            ("", 0.0),
            (None, 0.0),
            (7, 7.0),
        ]

        for value, expected in test_cases:
            assert parse_float_safe(value) == expected

    def test_parse_int_safe(self):
        test_cases = [
            ("3", 3),
            ("3.7", 3),
            ("  12 offers", 12),
            ("many", 0),
            ("", 0),
            (None, 0),
            (4.9, 4),
        ]

        for value, expected in test_cases:
            assert parse_int_safe(value) == expected

    def test_convert_boolean_to_string(self):
        assert convert_boolean_to_string("true") == "Yes"
        assert convert_boolean_to_string(True) == "Yes"
        assert convert_boolean_to_string("false") == "No"
        assert convert_boolean_to_string("TRUE") == "No"
        assert convert_boolean_to_string("") == "No"
        assert convert_boolean_to_string(None) == "No"
        assert convert_boolean_to_string(False) == "No"

    def test_clean_text(self):
        assert clean_text(None) == ''
        assert clean_text('') == ''
        assert clean_text('ACME') == 'ACME'
        assert clean_text(541511) == '541511'
