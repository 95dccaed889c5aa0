"""
Input canonicalization shared by every inbound payload.

Strings are NFKC-normalized, stripped of zero-width and non-breaking space
characters, and trimmed before any length or format rule is applied.
"""

import re
import unicodedata
from typing import Annotated, Any

from pydantic import BeforeValidator, EmailStr, Field

_INVISIBLE = re.compile("[\u200B-\u200D\u2060\u00A0]")

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def clean(value: str) -> str:
    return _INVISIBLE.sub("", unicodedata.normalize("NFKC", value)).strip()


def _clean_input(value: Any) -> Any:
    # Non-strings fall through so the type check reports them
    if isinstance(value, str):
        return clean(value)
    return value


def _clean_email(value: Any) -> Any:
    if isinstance(value, str):
        return clean(value).lower()
    return value


CleanStr = Annotated[str, BeforeValidator(_clean_input)]
NameStr = Annotated[str, BeforeValidator(_clean_input), Field(min_length=2)]
PasswordStr = Annotated[str, BeforeValidator(_clean_input), Field(min_length=6)]
CleanEmail = Annotated[EmailStr, BeforeValidator(_clean_email)]
DateStr = Annotated[str, Field(pattern=DATE_PATTERN)]
