"""CSV parser for patient records.

This module provides functionality to parse and validate patient records
from CSV files so a practice can import an existing patient list.
"""

import logging
import uuid
from pathlib import Path
from typing import List, Optional

import pandas as pd

from clinidoc.models.patient import Address, Patient
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import ValidationError
from clinidoc.utils.hebrew import (
    is_valid_email,
    is_valid_israeli_id,
    is_valid_israeli_phone,
)

logger = logging.getLogger(__name__)

# Required CSV columns
REQUIRED_COLUMNS = ["first_name", "last_name", "id_number", "phone"]

# Optional CSV columns
OPTIONAL_COLUMNS = [
    "id",
    "email",
    "birth_date",
    "street",
    "city",
    "postal_code",
    "country",
]

ADDRESS_COLUMNS = ["street", "city", "postal_code", "country"]


def parse_patients_csv(file_path: Path) -> List[Patient]:
    """Parse patient records from a CSV file.

    All columns are read as strings so ID numbers and phone numbers keep
    their leading zeros. Rows without an ``id`` get a generated UUID.

    Args:
        file_path: Path to a UTF-8 CSV file

    Returns:
        List of Patient records in file order

    Raises:
        ValidationError: If required columns or values are missing, a birth
            date cannot be parsed, or the file is not valid CSV
        FileNotFoundError: If the CSV file does not exist

    Example:
        >>> patients = parse_patients_csv(Path("patients.csv"))
        >>> patients[0].full_name
        'דנה כהן'
    """
    logger.info(f"Loading CSV from {file_path}")

    if not file_path.exists():
        raise FileNotFoundError(f"CSV file not found: {file_path}")

    try:
        df = pd.read_csv(file_path, encoding="utf-8", dtype=str, keep_default_na=False)
    except Exception as e:
        raise ValidationError(
            f"Failed to read CSV file {file_path}. Ensure file is valid CSV with "
            f"UTF-8 encoding. Error: {e}"
        ) from e

    df.columns = [str(col).strip() for col in df.columns]

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        raise ValidationError(
            f"CSV validation failed:\n  - Missing required columns: "
            f"{', '.join(missing_columns)}. Required columns are: "
            f"{', '.join(REQUIRED_COLUMNS)}"
        )

    unknown_columns = [
        col for col in df.columns if col not in REQUIRED_COLUMNS + OPTIONAL_COLUMNS
    ]
    if unknown_columns:
        logger.warning(
            f"CSV contains unknown columns that will be ignored: {', '.join(unknown_columns)}"
        )

    df = df.apply(lambda column: column.str.strip())

    errors: list[str] = []
    errors.extend(_validate_required_values(df))
    errors.extend(_validate_birth_date_column(df))
    if errors:
        raise ValidationError(
            f"Found {len(errors)} validation error(s) in CSV:\n  - "
            + "\n  - ".join(errors)
        )

    _log_value_warnings(df)

    now = utc_now()
    patients = [_row_to_patient(row, now) for _, row in df.iterrows()]
    logger.info(f"Successfully parsed {len(patients)} patient record(s)")
    return patients


def _validate_required_values(df: pd.DataFrame) -> list[str]:
    """Report empty required cells.

    Args:
        df: DataFrame to validate

    Returns:
        List of error messages (empty if no errors)
    """
    errors: list[str] = []
    for idx, row in df.iterrows():
        row_num = idx + 2  # +2 because: +1 for header, +1 for 1-indexed
        for column in REQUIRED_COLUMNS:
            if row[column] == "":
                errors.append(f"Row {row_num}: Missing required field '{column}'")
    return errors


def _validate_birth_date_column(df: pd.DataFrame) -> list[str]:
    """Validate the optional birth date column.

    Args:
        df: DataFrame to validate

    Returns:
        List of error messages (empty if no errors)
    """
    errors: list[str] = []
    if "birth_date" not in df.columns:
        return errors

    for idx, row in df.iterrows():
        row_num = idx + 2
        value = row["birth_date"]
        if value == "":
            continue
        try:
            pd.to_datetime(value, format="%Y-%m-%d")
        except (ValueError, TypeError):
            errors.append(
                f"Row {row_num}: Invalid date format '{value}'. "
                "Expected format: YYYY-MM-DD (e.g., 1990-05-15)"
            )
    return errors


def _log_value_warnings(df: pd.DataFrame) -> None:
    """Log rows whose values are present but look wrong."""
    for idx, row in df.iterrows():
        row_num = idx + 2
        if not is_valid_israeli_id(row["id_number"]):
            logger.warning(f"Row {row_num} [id_number]: ID number fails checksum")
        if not is_valid_israeli_phone(row["phone"]):
            logger.warning(f"Row {row_num} [phone]: Unrecognized phone number format")
        email = row.get("email", "")
        if email and not is_valid_email(email):
            logger.warning(f"Row {row_num} [email]: Invalid email format")


def _row_to_patient(row: pd.Series, now) -> Patient:
    address: Optional[Address] = None
    if any(row.get(column, "") for column in ADDRESS_COLUMNS):
        address = Address(
            street=row.get("street", ""),
            city=row.get("city", ""),
            postal_code=row.get("postal_code", "") or None,
            country=row.get("country", "") or None,
        )

    birth_date = row.get("birth_date", "")
    return Patient(
        id=row.get("id", "") or str(uuid.uuid4()),
        first_name=row["first_name"],
        last_name=row["last_name"],
        id_number=row["id_number"],
        phone=row["phone"],
        email=row.get("email", "") or None,
        birth_date=pd.to_datetime(birth_date, format="%Y-%m-%d").date() if birth_date else None,
        address=address,
        created_at=now,
        updated_at=now,
    )
