"""Convert region geometry from input space (top-left origin, y down, optional
pixel scale) into PDF user space (bottom-left origin, y up, points)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RenderRect:
    x: float
    bottom: float
    width: float
    height: float

    @property
    def top(self) -> float:
        return self.bottom + self.height

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2.0


def conversion_factor(scale: float | None) -> float:
    if scale is not None and scale > 0:
        return float(scale)
    return 1.0


def to_render_units(value: float | None, scale: float | None) -> float | None:
    if value is None:
        return None
    return float(value) / conversion_factor(scale)


def flip_y(page_h: float, y_top: float, height: float) -> float:
    """Bottom edge in PDF space of a box whose top edge sits ``y_top`` below the page top."""
    return page_h - y_top - height


def normalize_rect(
    x: float,
    y: float,
    width: float | None,
    height: float | None,
    page_h: float,
    scale: float | None,
    default_height: float,
    default_width: float = 0.0,
) -> RenderRect:
    s = conversion_factor(scale)
    x_pt = float(x) / s
    y_pt = float(y) / s
    width_pt = float(width) / s if width is not None else default_width
    height_pt = float(height) / s if height is not None else default_height
    return RenderRect(
        x=x_pt,
        bottom=flip_y(page_h, y_pt, height_pt),
        width=width_pt,
        height=height_pt,
    )
