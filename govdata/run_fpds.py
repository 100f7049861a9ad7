#!/usr/bin/env python3
"""
FPDS Search CLI
Command-line interface for fetching FPDS award contracts.
"""

import asyncio
import argparse
import sys
from dataclasses import replace
from pathlib import Path
import logging

from govdata.src.api_client import FPDSConfig
from govdata.src.errors import ErrorKind, GovDataError
from govdata.src.exporter import convert_to_csv, format_as_json
from govdata.src.field_mappings import get_field_mappings
from govdata.src.models import ContractSearchRequest
from govdata.src.orchestrator import FPDSRequest
from govdata.src.validator import SearchParamValidator

USAGE_EXAMPLES = """
Examples:
  # Search one contract and print JSON
  govdata search -c W912DY-20-C-0001

  # Several contracts, written to JSON
  govdata search -c W912DY-20-C-0001 W912DY-20-C-0002 -o contracts.json

  # One contract with a date range, written to CSV
  govdata search -c W912DY-20-C-0001 -d "[2022/01/01, 2024/12/31]" -o contract.csv

  # Search by NAICS code
  govdata search --naics 541511 -d "[2023/01/01, 2024/12/31]" -o it_contracts.csv

  # Agency and NAICS filters together
  govdata search --agency "HEALTH AND HUMAN SERVICES" --naics 541511 -o hhs_it.json

  # Higher concurrency (GOVDATA_THREAD_COUNT sets the default)
  govdata search -c A123 B456 C789 --threads 15 -o multiple.csv

  # Show the field mapping table
  govdata fields

Notes:
  - Default output is JSON to stdout
  - Use a .csv extension for CSV output; anything else is JSON
  - Date ranges must be in the format [YYYY/MM/DD, YYYY/MM/DD]
"""


def setup_logging(verbose: bool = False, log_file: str = None):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def build_search_params(args) -> dict:
    """Translate CLI options into FPDS search parameters."""
    params = {}

    if args.contract:
        params['PIID'] = args.contract[0] if len(args.contract) == 1 else args.contract
    if args.date_range:
        params['LAST_MOD_DATE'] = args.date_range
    if args.naics:
        params['NAICS_CODE'] = args.naics
    if args.psc:
        params['PSC_CODE'] = args.psc
    if args.agency:
        params['CONTRACTING_AGENCY'] = SearchParamValidator.sanitize_search_term(args.agency)
    if args.vendor:
        params['VENDOR_NAME'] = SearchParamValidator.sanitize_search_term(args.vendor)

    return params


def write_output(records, output: str = None):
    """Write records to a .csv/.json file, or JSON to stdout."""
    if not output:
        print(format_as_json(records))
        return

    path = Path(output)
    if path.suffix.lower() == '.csv':
        path.write_text(convert_to_csv(records), encoding='utf-8')
        print(f"CSV file created: {path}", file=sys.stderr)
    else:
        path.write_text(format_as_json(records), encoding='utf-8')
        print(f"JSON file created: {path}", file=sys.stderr)


async def run_search(args):
    """Search FPDS contracts."""
    params = build_search_params(args)

    if not params.get('PIID') and not any([args.naics, args.psc, args.agency, args.vendor]):
        print("Error: Must specify at least one search parameter "
              "(contract number, NAICS, PSC, agency, or vendor)", file=sys.stderr)
        return 1

    config = FPDSConfig.from_env()
    if args.threads is not None:
        config = replace(config, thread_count=args.threads)

    print("Searching FPDS contracts...", file=sys.stderr)

    if args.contract and len(args.contract) > 1:
        records = await FPDSRequest.search_contracts(
            ContractSearchRequest(contracts=args.contract, date_range=args.date_range),
            config=config
        )
    else:
        request = FPDSRequest(params, config)
        print(f"Search URL: {request.search_url}", file=sys.stderr)
        records = await request.get_data()
        print(f"Total pages: {request.total_pages}", file=sys.stderr)
        print(f"Total records from API: {request.total_records}", file=sys.stderr)

    print(f"Found {len(records)} contract records", file=sys.stderr)
    write_output(records, args.output)
    return 0


async def show_examples(args):
    """Print usage examples."""
    print(USAGE_EXAMPLES)
    return 0


async def show_fields(args):
    """Print the output field -> feed path-key table."""
    for field_name, source in get_field_mappings().items():
        print(f"{field_name:<26} {source}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Govdata FPDS CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE_EXAMPLES
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--log-file',
        help='Also write logs to this file'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Command to run'
    )

    parser_search = subparsers.add_parser(
        'search',
        help='Search FPDS contracts'
    )
    parser_search.add_argument('-c', '--contract', nargs='+',
                               help='Contract number(s) (PIID)')
    parser_search.add_argument('-d', '--date-range',
                               help='Date range [YYYY/MM/DD, YYYY/MM/DD]')
    parser_search.add_argument('-o', '--output',
                               help='Output file (.csv or .json); JSON to stdout when omitted')
    parser_search.add_argument('--threads', type=int, default=None,
                               help='Number of concurrent requests (default: GOVDATA_THREAD_COUNT or 10)')
    parser_search.add_argument('--naics', help='NAICS code filter')
    parser_search.add_argument('--psc', help='PSC code filter')
    parser_search.add_argument('--agency', help='Contracting agency filter')
    parser_search.add_argument('--vendor', help='Vendor name filter')
    parser_search.set_defaults(func=run_search)

    parser_fields = subparsers.add_parser(
        'fields',
        help='Show output fields and their feed paths'
    )
    parser_fields.set_defaults(func=show_fields)

    parser_examples = subparsers.add_parser(
        'examples',
        help='Show usage examples'
    )
    parser_examples.set_defaults(func=show_examples)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.log_file)

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        print("\n\nSearch interrupted by user.", file=sys.stderr)
        return 130
    except GovDataError as e:
        print(f"\nError: {e}", file=sys.stderr)
        if e.kind is ErrorKind.VALIDATION:
            for suggestion in e.suggestions:
                print(f"  - {suggestion}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
