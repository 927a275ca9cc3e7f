"""Byte-size formatting and parsing of the human-readable sizes printed by system tools."""

import re
from typing import Optional

_IEC_UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB")
_PREFIXES = "KMGTPE"
_SIZE_RE = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*([kKMGTPE]?)(i?)([bB]?)\s*$")


def format_size(num: Optional[int]) -> str:
    """IEC size with one decimal: 1536 -> '1.5KiB'. None renders as '-'."""
    if num is None:
        return "-"
    if num < 1024:
        return f"{num}B"
    value = float(num)
    for unit in _IEC_UNITS:
        value /= 1024.0
        if value < 1024.0 or unit == _IEC_UNITS[-1]:
            return f"{value:.1f}{unit}"
    return f"{num}B"


def parse_size(text: str, binary: bool = True) -> Optional[int]:
    """Parse '1.2G', '512M', '1.5GiB', '2.3 GB', '0B' into bytes.

    binary selects 1024-based prefixes (journalctl, du -h); docker prints 1000-based ones.
    An explicit 'i' (GiB) always means 1024. Returns None when the text is not a size.
    """
    m = _SIZE_RE.match(text or "")
    if not m:
        return None
    number, prefix, iec, _ = m.groups()
    value = float(number.replace(",", "."))
    if not prefix:
        return int(value)
    base = 1024 if (binary or iec) else 1000
    power = _PREFIXES.index(prefix.upper()) + 1
    return int(value * base ** power)


def kib_ceil(num: int) -> int:
    """Bytes to KiB, rounded up the way du -k counts."""
    return (num + 1023) // 1024
