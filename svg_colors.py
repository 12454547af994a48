"""
svg_colors.py — Text-level recoloring of SVG markup.

The SVG is never parsed.  Colors are swapped with regular expressions on the
raw text, which is enough for the flat single-color icons and pin shapes this
project works with.
"""

import re

_WORD_RE = re.compile(r"^[a-z]+$", re.IGNORECASE)

# Literal colors an icon is drawn with before tinting
_ACTIVE_COLOR_PATTERNS = (
    re.compile(r"#000000\b", re.IGNORECASE),
    re.compile(r"#000\b", re.IGNORECASE),
    re.compile(r"currentColor", re.IGNORECASE),
)


def _to_text(svg):
    if isinstance(svg, (bytes, bytearray)):
        return bytes(svg).decode("utf-8", "surrogateescape"), True
    return svg, False


def _like_input(svg: str, as_bytes: bool):
    return svg.encode("utf-8", "surrogateescape") if as_bytes else svg


def color_pattern(token: str) -> re.Pattern:
    """Return the regex used to find ``token`` in SVG text.

    Plain words such as ``black`` only match as whole words; anything else
    (hex codes) is matched literally.  Both are case-insensitive.
    """
    escaped = re.escape(token)
    if _WORD_RE.match(token):
        return re.compile(rf"\b{escaped}\b", re.IGNORECASE)
    return re.compile(escaped, re.IGNORECASE)


def apply_color_map(svg, replacements):
    """Replace every color token in ``replacements`` with its new color.

    Each entry is a separate pass over the whole document, in mapping order,
    so a later entry also sees colors written by an earlier one.  Entries
    with an empty token or an empty replacement are ignored.  ``svg`` may be
    str or bytes; the result has the same type.
    """
    text, as_bytes = _to_text(svg)
    for token, color in replacements.items():
        if not token or not color:
            continue
        # lambda keeps backslashes in the color from being read as group refs
        text = color_pattern(token).sub(lambda _m, c=color: c, text)
    return _like_input(text, as_bytes)


def apply_active_color(svg, color: str):
    """Tint an icon by replacing black (``#000000``/``#000``) and
    ``currentColor`` with ``color``."""
    text, as_bytes = _to_text(svg)
    for pattern in _ACTIVE_COLOR_PATTERNS:
        text = pattern.sub(lambda _m: color, text)
    return _like_input(text, as_bytes)
