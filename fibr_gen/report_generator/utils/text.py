# This module contains the text helpers shared by filtering and stamping:
# value stringification and the two placeholder syntaxes.

import datetime
import re
from decimal import Decimal
from typing import Any, Dict, Mapping

LABEL_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


def stringify(value: Any) -> str:
    """
    Canonical string form of a data value.

    Every equality comparison (filters, distinct values, axis parameters)
    and every placeholder substitution goes through this function, so
    numeric and string columns compare the same way.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, datetime.datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, datetime.date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def replace_label_placeholders(text: str, replacements: Mapping[str, Any]) -> str:
    """
    Substitute every "{label}" occurrence in text.

    Single pass over the original text: a substituted value is never
    scanned again, and placeholders without a binding are left verbatim.
    """
    if not replacements or "{" not in text:
        return text

    def _substitute(match: "re.Match") -> str:
        label = match.group(1)
        if label in replacements:
            return stringify(replacements[label])
        return match.group(0)

    return LABEL_PLACEHOLDER_RE.sub(_substitute, text)


def replace_param_placeholders(text: str, params: Dict[str, str]) -> str:
    """Substitute "${key}" occurrences, used for output directories and file names."""
    for key, value in params.items():
        text = text.replace(f"${{{key}}}", value)
    return text
