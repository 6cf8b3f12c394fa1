# fibr_gen/report_generator/data/dynamic_date.py
"""
Relative date expressions used in workbook parameters.

Format: "$date:<format>:<unit>:<offset>", e.g. "$date:day:day:-1" is
yesterday as YYYY-MM-DD and "$date:month:month:-1" is last month as YYYY-MM.
"""

import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..errors import DynamicDateError

DYNAMIC_DATE_PREFIX = "$date:"

_OUTPUT_FORMATS = {
    "day": "%Y-%m-%d",
    "month": "%Y-%m",
    "year": "%Y",
    "datetime": "%Y-%m-%d %H:%M:%S",
}

_UNITS = {
    "day": lambda n: relativedelta(days=n),
    "month": lambda n: relativedelta(months=n),
    "year": lambda n: relativedelta(years=n),
}


def is_dynamic_date(value: str) -> bool:
    return isinstance(value, str) and value.startswith(DYNAMIC_DATE_PREFIX)


def parse_dynamic_date(expression: str, base: Optional[datetime.datetime] = None) -> str:
    """
    Evaluate a dynamic date expression against base (defaults to now).

    Strings without the "$date:" prefix are returned unchanged.

    Raises:
        DynamicDateError: malformed expression, non-integer offset or unknown unit.
    """
    if not is_dynamic_date(expression):
        return expression

    parts = expression.split(":")
    if len(parts) < 4:
        raise DynamicDateError("invalid dynamic date format", expression=expression)

    output_format, unit, offset_text = parts[1], parts[2], parts[3]
    try:
        offset = int(offset_text)
    except ValueError:
        raise DynamicDateError("invalid offset in dynamic date", expression=expression) from None

    if unit not in _UNITS:
        raise DynamicDateError(f"unsupported unit in dynamic date: {unit}", expression=expression)

    base = base or datetime.datetime.now()
    target = base + _UNITS[unit](offset)
    return target.strftime(_OUTPUT_FORMATS.get(output_format, _OUTPUT_FORMATS["day"]))
