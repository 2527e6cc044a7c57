"""USSD session history export: codec, schema, fetcher and backward pagination."""
