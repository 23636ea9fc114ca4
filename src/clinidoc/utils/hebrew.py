"""Hebrew and Israeli locale helpers.

Validation and formatting rules for Israeli identifiers, phone numbers and
right-to-left text detection.
"""

import re


# Hebrew, Arabic, Syriac, Thaana and the RTL presentation forms
RTL_CHAR_PATTERN = re.compile(
    r"[\u0590-\u05FF\u0600-\u06FF\u0700-\u074F\u0750-\u077F\u0780-\u07BF"
    r"\uFB1D-\uFDFF\uFE70-\uFEFF]"
)

HEBREW_CHAR_PATTERN = re.compile(r"[\u0590-\u05FF]")

RTL_LANGUAGES = ["he", "ar", "fa"]

_MOBILE_PATTERNS = [
    re.compile(r"^05[0-9]{8}$"),
    re.compile(r"^\+?972-?5[0-9]{8}$"),
]

_LANDLINE_PATTERNS = [
    re.compile(r"^0[2-489][0-9]{7}$"),
    re.compile(r"^\+?972-?[2-489][0-9]{7}$"),
]

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def contains_rtl(text: str) -> bool:
    """Return True if text contains any right-to-left script character.

    Example:
        >>> contains_rtl("שלום world")
        True
        >>> contains_rtl("hello")
        False
    """
    return bool(RTL_CHAR_PATTERN.search(text))


def is_hebrew_text(text: str) -> bool:
    """Return True if text contains Hebrew letters."""
    return bool(HEBREW_CHAR_PATTERN.search(text))


def is_rtl_language(language: str) -> bool:
    """Return True if the language code is written right-to-left."""
    return language in RTL_LANGUAGES


def is_valid_israeli_id(id_number: str) -> bool:
    """Validate an Israeli ID number (teudat zehut) with the check digit.

    Each of the nine digits is multiplied alternately by 1 and 2, two-digit
    products are reduced by summing their digits, and the total must be a
    multiple of 10.

    Args:
        id_number: Nine digit ID string.

    Returns:
        True if the ID passes the checksum.

    Example:
        >>> is_valid_israeli_id("000000018")
        True
        >>> is_valid_israeli_id("123456789")
        False
    """
    if not id_number or not re.fullmatch(r"\d{9}", id_number):
        return False

    total = 0
    for index, char in enumerate(id_number):
        digit = int(char) * ((index % 2) + 1)
        if digit > 9:
            digit = digit // 10 + digit % 10
        total += digit

    return total % 10 == 0


def is_valid_israeli_phone(phone: str) -> bool:
    """Validate Israeli mobile or landline phone number format.

    Dashes, spaces and parentheses are ignored.
    """
    cleaned = re.sub(r"[-\s()]", "", phone)
    return any(
        pattern.match(cleaned) for pattern in _MOBILE_PATTERNS + _LANDLINE_PATTERNS
    )


def format_israeli_phone(phone: str) -> str:
    """Format a ten digit mobile number as 05X-XXXXXXX.

    Anything else is returned unchanged.
    """
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10 and digits.startswith("05"):
        return f"{digits[:3]}-{digits[3:]}"
    return phone


def is_valid_email(email: str) -> bool:
    """Validate email address format."""
    return bool(_EMAIL_PATTERN.match(email))
