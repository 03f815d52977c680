from __future__ import annotations

from collections.abc import Iterable

from clipshrink.config import OutputFormat

# Clipboard type identifiers that count as "this format is present".
# MIME types first; the rest are platform-native names Qt may surface.
FORMAT_TYPE_IDS: dict[OutputFormat, tuple[str, ...]] = {
    OutputFormat.PNG: ("image/png", "public.png", "PNG"),
    OutputFormat.JPEG: ("image/jpeg", "image/jpg", "public.jpeg", "JFIF"),
    OutputFormat.HEIC: ("image/heic", "image/heif", "public.heic"),
}

_RESOLVE_ORDER = (OutputFormat.PNG, OutputFormat.JPEG, OutputFormat.HEIC)


def mime_type_for(fmt: OutputFormat) -> str:
    """Native clipboard type identifier to publish `fmt` under."""
    if fmt == OutputFormat.ORIGINAL:
        fmt = OutputFormat.PNG
    return FORMAT_TYPE_IDS[fmt][0]


def resolve_format(preferred: OutputFormat, available_types: Iterable[str]) -> OutputFormat:
    """Pick the concrete output codec.

    An explicit preference wins. For ``Original`` the clipboard's own types
    are inspected in PNG, JPEG, HEIC order; PNG is the default when none
    of them is present.
    """
    if preferred != OutputFormat.ORIGINAL:
        return preferred
    available = {str(t).lower() for t in available_types}
    for fmt in _RESOLVE_ORDER:
        if any(type_id.lower() in available for type_id in FORMAT_TYPE_IDS[fmt]):
            return fmt
    return OutputFormat.PNG
