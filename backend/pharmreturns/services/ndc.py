"""
NDC normalization and format validation.

The canonical form is the 11-digit 5-4-2 layout (``XXXXX-XXXX-XX``). A
10-digit NDC is one of 4-4-2, 5-3-2 or 5-4-1; when the separators are
present the short segment gets its leading zero, bare 10-digit strings are
read as 4-4-2.
"""

import re

CANONICAL_NDC = re.compile(r"\d{5}-\d{4}-\d{2}", re.ASCII)

_SEPARATORS = re.compile(r"[\s\-_./]+")

# (labeler, product, package) digit counts → zero-pad position
_TEN_DIGIT_LAYOUTS = {
    (4, 4, 2): 0,
    (5, 3, 2): 1,
    (5, 4, 1): 2,
}


def _join(labeler: str, product: str, package: str) -> str:
    return f"{labeler}-{product}-{package}"


def normalize_ndc(raw: str | None) -> str:
    """Reformat a raw NDC into ``XXXXX-XXXX-XX``.

    Input that cannot be mapped onto the canonical layout comes back as the
    stripped string so that `is_valid_ndc_format` rejects it. Never raises.
    """
    if raw is None:
        return ""
    text = str(raw).strip()

    segments = [s for s in _SEPARATORS.split(text) if s]
    stripped = "".join(segments)
    if not (stripped.isascii() and stripped.isdigit()):
        return text

    if len(stripped) == 11:
        return _join(stripped[:5], stripped[5:9], stripped[9:])

    if len(stripped) != 10:
        return text

    if len(segments) == 3:
        pad_at = _TEN_DIGIT_LAYOUTS.get(tuple(len(s) for s in segments))
        if pad_at is None:
            return text
        segments[pad_at] = "0" + segments[pad_at]
        return _join(*segments)

    # No usable separators: assume the 4-4-2 labeler layout
    padded = "0" + stripped
    return _join(padded[:5], padded[5:9], padded[9:])


def is_valid_ndc_format(ndc: str | None) -> bool:
    """True when *ndc* is already in canonical 5-4-2 form."""
    return bool(ndc) and CANONICAL_NDC.fullmatch(ndc) is not None


def validate_ndc(raw: str | None) -> tuple[str, bool]:
    """Normalize *raw* and report whether the result is well-formed."""
    normalized = normalize_ndc(raw)
    return normalized, is_valid_ndc_format(normalized)
