"""
Govdata FPDS Client
===================

This package fetches award-contract records from the Federal Procurement
Data System ATOM feed, normalizes the nested XML into flat records and
renders them as JSON or CSV.

Main components:
- errors: Tagged GovDataError type
- concurrency: FIFO concurrency gate for in-flight requests
- api_client: Configuration, aiohttp client and retrying transport
- validator: Search parameter validation and value coercions
- xml_processor: Feed parsing and entry flattening
- processor: Field mapping to ContractRecord
- orchestrator: Paginated and multi-contract fetching
- exporter: JSON and CSV rendering
"""

__version__ = "0.1.0"
__author__ = "Govdata Development Team"
