from dataclasses import dataclass

from field_definitions import FieldsDefinition

DEFAULT_FONT_SIZE = 12.0
DEFAULT_MIN_FONT_SIZE = 6.0
DEFAULT_FONT_COLOR_RGB = (0.0, 0.0, 0.0)
DEFAULT_PADDING_X = 3.0
DEFAULT_PADDING_Y = 0.0
DEFAULT_FONT_NAME = "Helvetica"
DEFAULT_LINE_HEIGHT_FACTOR = 1.2
DEFAULT_CHECKBOX_SIZE = 16.0


@dataclass(frozen=True)
class OverlayOptions:
    """Overlay settings resolved once per render call.

    ``scale`` is input units per PDF point; ``None`` means the definition is
    already in points.
    """

    scale: float | None = None
    checkbox_image_path: str | None = None
    font_size: float = DEFAULT_FONT_SIZE
    min_font_size: float = DEFAULT_MIN_FONT_SIZE
    font_color_rgb: tuple[float, float, float] = DEFAULT_FONT_COLOR_RGB
    padding_x: float = DEFAULT_PADDING_X
    padding_y: float = DEFAULT_PADDING_Y
    font_name: str = DEFAULT_FONT_NAME


def normalize_color(color: list | tuple | None, fallback: tuple[float, float, float]) -> tuple[float, float, float]:
    if not isinstance(color, (list, tuple)) or len(color) != 3:
        return fallback
    try:
        r = max(0.0, min(1.0, float(color[0])))
        g = max(0.0, min(1.0, float(color[1])))
        b = max(0.0, min(1.0, float(color[2])))
        return (r, g, b)
    except (TypeError, ValueError):
        return fallback


def parse_hex_color(value: str | None) -> tuple[float, float, float]:
    """Parse ``#RRGGBB`` or ``#RGB``; anything else yields black."""
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_FONT_COLOR_RGB
    hexv = value.strip().lower()
    if hexv.startswith("#"):
        hexv = hexv[1:]
    if len(hexv) == 3:
        hexv = "".join(ch * 2 for ch in hexv)
    if len(hexv) == 6 and all(ch in "0123456789abcdef" for ch in hexv):
        return (
            int(hexv[0:2], 16) / 255.0,
            int(hexv[2:4], 16) / 255.0,
            int(hexv[4:6], 16) / 255.0,
        )
    return DEFAULT_FONT_COLOR_RGB


def resolve_overlay_options(
    definition: FieldsDefinition | None,
    default_checkbox_image: str | None = None,
) -> OverlayOptions:
    """Build options from an imported definition, using defaults for anything missing or invalid."""
    if definition is None:
        return OverlayOptions(checkbox_image_path=default_checkbox_image or None)

    scale = definition.scale if definition.scale is not None and definition.scale > 0 else None
    checkbox = definition.checkbox_checked_image
    if not checkbox or not checkbox.strip():
        checkbox = default_checkbox_image or None
    font_size = (
        float(definition.font_size)
        if definition.font_size is not None and definition.font_size > 0
        else DEFAULT_FONT_SIZE
    )
    padding_x = (
        float(definition.padding_x)
        if definition.padding_x is not None and definition.padding_x >= 0
        else DEFAULT_PADDING_X
    )
    padding_y = (
        float(definition.padding_y)
        if definition.padding_y is not None and definition.padding_y >= 0
        else DEFAULT_PADDING_Y
    )
    return OverlayOptions(
        scale=scale,
        checkbox_image_path=checkbox,
        font_size=font_size,
        min_font_size=DEFAULT_MIN_FONT_SIZE,
        font_color_rgb=parse_hex_color(definition.font_color),
        padding_x=padding_x,
        padding_y=padding_y,
        font_name=definition.font_name or DEFAULT_FONT_NAME,
    )
