"""Govdata: FPDS award-contract fetcher and its command-line front end."""
