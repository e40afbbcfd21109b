"""Shared utilities and helpers for the medi-assist package."""

from medi_assist.utils.json_output import extract_json_from_response, parse_json_object
from medi_assist.utils.logging import configure_logging

__all__ = ["configure_logging", "extract_json_from_response", "parse_json_object"]
