"""CSV parser module.

This module provides patient CSV import.
"""

from clinidoc.csv_parser.parser import parse_patients_csv

__all__ = ["parse_patients_csv"]
