"""
Audio Utilities

Extension handling and bitrate conversion shared by discovery and the
bitrate probes.
"""

import math
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple, Union

from ..core.exceptions import BitrateProbeError

BITRATE_UNITS = {
    'bps': 1000.0,
    'kbps': 1.0,
}


def normalize_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    """
    Normalize user supplied extensions to lowercase with a leading dot

    >>> normalize_extensions(["M4A", ".mp3"])
    ('.m4a', '.mp3')
    """
    normalized = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith('.'):
            ext = f".{ext}"
        if ext not in normalized:
            normalized.append(ext)
    return tuple(normalized)


def has_extension(filepath: Union[str, Path], extensions: Iterable[str]) -> bool:
    """Case-insensitive extension check"""
    return Path(filepath).suffix.lower() in extensions


def parse_bitrate(raw: Any, unit: str = 'bps', filepath: Optional[str] = None) -> int:
    """
    Convert a raw probe value into an integer kbps bitrate

    Args:
        raw: Integer or numeric string; only the first line of text is used
        unit: Unit of raw, 'bps' (ffprobe, mutagen) or 'kbps'
        filepath: File the value belongs to, for error messages

    Empty, non-numeric, zero and negative values are rejected, as are
    values that round to 0 kbps.

    Raises:
        BitrateProbeError: If the value is not a usable bitrate
    """
    if unit not in BITRATE_UNITS:
        raise ValueError(f"Unknown bitrate unit: {unit}")

    if raw is None or isinstance(raw, bool):
        raise BitrateProbeError("No bitrate reported", details=repr(raw), filepath=filepath)

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        lines = str(raw).strip().splitlines()
        text = lines[0].strip() if lines else ""
        if not text:
            raise BitrateProbeError("Empty bitrate value", filepath=filepath)
        try:
            value = float(text)
        except ValueError:
            raise BitrateProbeError(
                "Non-numeric bitrate value",
                details=repr(text),
                filepath=filepath
            )

    if not math.isfinite(value) or value <= 0:
        raise BitrateProbeError("Invalid bitrate value", details=repr(raw), filepath=filepath)

    kbps = int(round(value / BITRATE_UNITS[unit]))
    if kbps <= 0:
        raise BitrateProbeError("Invalid bitrate value", details=repr(raw), filepath=filepath)
    return kbps
