import math
from typing import Dict
from typing import Union

_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")

UNIT_SIZES: Dict[str, int] = {unit: 1 << (10 * i) for i, unit in enumerate(_UNITS)}


def size_fmt(num: Union[int, float]) -> str:
    """Render a byte count using the largest binary unit that keeps it >= 1.

    >>> size_fmt(2048)
    '2.00KB'
    """
    for unit in _UNITS[:-1]:
        if abs(num) < 1024.0:
            return f"{num:.2f}{unit}"
        num /= 1024.0
    return f"{num:.2f}{_UNITS[-1]}"


def parse_size(text: str) -> int:
    """Convert a human readable size such as ``"1.5MB"`` into bytes.

    The unit suffix is matched case-insensitively and is mandatory. Raises
    `ValueError` when no number can be found or the unit is not known.
    """
    text = text.strip()
    last_digit = max((i for i, char in enumerate(text) if char.isdigit()), default=-1)
    if last_digit == -1:
        raise ValueError(f"invalid size: {text}")

    number_part = text[: last_digit + 1]
    unit_part = text[last_digit + 1 :].strip().upper()
    try:
        number = float(number_part)
    except ValueError:
        raise ValueError(f"invalid number: {number_part}") from None
    if not math.isfinite(number):
        raise ValueError(f"invalid number: {number_part}")

    unit = UNIT_SIZES.get(unit_part)
    if unit is None:
        raise ValueError(f"unrecognized unit: {unit_part}")
    size = number * unit
    if not math.isfinite(size):
        raise ValueError(f"size out of range: {text}")
    return int(size)
