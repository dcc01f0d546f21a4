import logging
from dataclasses import dataclass

from reportlab.pdfbase import pdfmetrics

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
FALLBACK_ASCENT_RATIO = 0.718
FALLBACK_DESCENT_RATIO = -0.176

_BASE14_FONTS = {
    "Courier",
    "Courier-Bold",
    "Courier-Oblique",
    "Courier-BoldOblique",
    "Helvetica",
    "Helvetica-Bold",
    "Helvetica-Oblique",
    "Helvetica-BoldOblique",
    "Times-Roman",
    "Times-Bold",
    "Times-Italic",
    "Times-BoldItalic",
    "Symbol",
    "ZapfDingbats",
}


@dataclass(frozen=True)
class FittedText:
    text: str
    size: float
    truncated: bool = False


def _normalize_font_name(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch.isalnum())


def _font_is_available(font_name: str) -> bool:
    if font_name in _BASE14_FONTS:
        return True
    try:
        pdfmetrics.getFont(font_name)
        return True
    except Exception:
        return False


def resolve_font_name(font_name: str | None, fallback_font: str = "Helvetica") -> str:
    if not font_name:
        return fallback_font
    if _font_is_available(font_name):
        return font_name

    # Try case/spacing-insensitive match against registered fonts.
    normalized = _normalize_font_name(font_name)
    for candidate in list(pdfmetrics.getRegisteredFontNames()) + sorted(_BASE14_FONTS):
        if _normalize_font_name(candidate) == normalized and _font_is_available(candidate):
            return candidate

    logger.warning("Font '%s' is unavailable. Falling back to '%s'.", font_name, fallback_font)
    return fallback_font


def to_latin1_safe(text: str | None) -> str:
    """Standard 14 fonts only cover Latin-1; anything above U+00FF becomes '?'."""
    if not text:
        return ""
    return "".join(ch if ord(ch) <= 0xFF else "?" for ch in text)


def measure(font_name: str, text: str, size: float) -> float:
    return pdfmetrics.stringWidth(text, font_name, size)


def font_vertical_metrics(font_name: str, size: float) -> tuple[float, float]:
    """Return (ascent, descent) in points for ``font_name`` at ``size``.

    Fonts without face metrics use fixed Helvetica-like ratios. This is an
    approximation, good enough to centre a single line in a box.
    """
    try:
        face = pdfmetrics.getFont(font_name).face
        ascent = getattr(face, "ascent", None)
        descent = getattr(face, "descent", None)
    except Exception:
        ascent = descent = None
    if ascent is None or descent is None or (ascent == 0 and descent == 0):
        return size * FALLBACK_ASCENT_RATIO, size * FALLBACK_DESCENT_RATIO
    return size * ascent / 1000.0, size * descent / 1000.0


def shrink_to_fit(
    font_name: str,
    text: str,
    width_limit: float,
    max_size: float,
    min_size: float,
) -> float:
    """Largest size stepping down by 1pt from ``max_size`` whose width fits, never below ``min_size``."""
    size = float(max_size)
    while size >= min_size and measure(font_name, text, size) > width_limit:
        size -= 1.0
    return max(size, float(min_size))


def truncate_with_ellipsis(font_name: str, text: str, size: float, width_limit: float) -> str:
    max_text_width = width_limit - measure(font_name, ELLIPSIS, size)
    if max_text_width <= 0:
        return ELLIPSIS
    result = text
    while result and measure(font_name, result, size) > max_text_width:
        result = result[:-1]
    return result + ELLIPSIS


def fit_text(
    font_name: str,
    text: str,
    width_limit: float | None,
    max_size: float,
    min_size: float,
) -> FittedText:
    if width_limit is None or width_limit <= 0:
        return FittedText(text=text, size=float(max_size))
    size = shrink_to_fit(font_name, text, width_limit, max_size, min_size)
    if measure(font_name, text, size) > width_limit:
        return FittedText(
            text=truncate_with_ellipsis(font_name, text, size, width_limit),
            size=size,
            truncated=True,
        )
    return FittedText(text=text, size=size)
