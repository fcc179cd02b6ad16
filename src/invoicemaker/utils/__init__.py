"""Utility functions for invoicemaker."""

from invoicemaker.utils.date_parser import parse_date, parse_datetime
from invoicemaker.utils.amount_parser import parse_amount, parse_percentage
from invoicemaker.utils.phone import clean_phone_number, format_phone_number

__all__ = [
    "parse_date",
    "parse_datetime",
    "parse_amount",
    "parse_percentage",
    "clean_phone_number",
    "format_phone_number",
]
