"""Draw field values onto existing PDF pages at the positions given by a field definition.

Definition coordinates use a top-left origin with y growing downward (as
exported by the template mapper). They are converted to PDF user space
(bottom-left origin, y up) with the page height. Text is drawn with a
standard font into a reportlab overlay that is merged on top of each page,
so existing page content is preserved. Form widgets are not touched.
"""

import io
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from pypdf import PageObject, PdfReader, PdfWriter
from reportlab.lib.colors import Color
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from field_definitions import FieldDefinition, FieldKind, FieldValue, VerticalAlign, lookup_value
from overlay_options import (
    DEFAULT_CHECKBOX_SIZE,
    DEFAULT_FONT_COLOR_RGB,
    DEFAULT_LINE_HEIGHT_FACTOR,
    OverlayOptions,
    normalize_color,
)
from settings import RESOURCES_DIR
from text_fit import fit_text, font_vertical_metrics, resolve_font_name, to_latin1_safe
from unit_normalizer import RenderRect, normalize_rect, to_render_units

logger = logging.getLogger(__name__)

RESOURCE_PREFIX = "resource:"


class OutcomeStatus(str, Enum):
    DRAWN = "drawn"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class FieldOutcome:
    name: str | None
    page: int | None
    status: OutcomeStatus
    detail: str = ""
    text: str | None = None
    font_size: float | None = None


@dataclass
class RenderReport:
    outcomes: list[FieldOutcome] = field(default_factory=list)

    def add(self, outcome: FieldOutcome) -> None:
        self.outcomes.append(outcome)

    def _with_status(self, status: OutcomeStatus) -> list[FieldOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def drawn(self) -> list[FieldOutcome]:
        return self._with_status(OutcomeStatus.DRAWN)

    @property
    def skipped(self) -> list[FieldOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> list[FieldOutcome]:
        return self._with_status(OutcomeStatus.FAILED)

    def for_field(self, name: str) -> list[FieldOutcome]:
        return [o for o in self.outcomes if o.name == name]


def resolve_resource_path(path: str, base_dir: Path | None = None) -> Path:
    """``resource:<name>`` points into the bundled resources directory; other
    relative paths are taken from ``base_dir`` (the working directory by default)."""
    if path.startswith(RESOURCE_PREFIX):
        return RESOURCES_DIR / path[len(RESOURCE_PREFIX):].strip().lstrip("/")
    target = Path(path).expanduser()
    if not target.is_absolute():
        target = (base_dir or Path.cwd()) / target
    return target


class StampImageLoader:
    """Loads the checked-checkbox stamp at most once per render call."""

    def __init__(self, path: str | None, base_dir: Path | None = None) -> None:
        self.path = path.strip() if path else ""
        self.base_dir = base_dir
        self._loaded = False
        self._image: ImageReader | None = None

    def get(self) -> ImageReader | None:
        if not self._loaded:
            self._loaded = True
            self._image = self._load()
        return self._image

    def _load(self) -> ImageReader | None:
        if not self.path:
            return None
        target = resolve_resource_path(self.path, self.base_dir)
        if not target.is_file():
            logger.warning("Checkbox image not found: %s", target)
            return None
        try:
            image = ImageReader(str(target))
            image.getSize()
        except Exception as exc:
            logger.warning("Could not decode checkbox image %s: %s", target, exc)
            return None
        return image


class PageSurface:
    """Append-mode drawing surface for one page.

    Drawing goes to a reportlab canvas the size of the page's media box; on
    close the canvas is merged on top of the page's existing content.
    """

    def __init__(self, page: PageObject) -> None:
        self.page = page
        box = page.mediabox
        self.width = float(box.width)
        self.height = float(box.height)
        self._packet = io.BytesIO()
        self._canvas = canvas.Canvas(self._packet, pagesize=(self.width, self.height))
        left, bottom = float(box.left), float(box.bottom)
        if left or bottom:
            self._canvas.translate(left, bottom)
        self._painted = False

    def __enter__(self) -> "PageSurface":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    def set_fill_color(self, rgb: tuple[float, float, float]) -> None:
        self._canvas.setFillColor(Color(*rgb))

    def draw_text(self, font_name: str, size: float, x: float, y: float, text: str) -> None:
        self._canvas.setFont(font_name, size)
        self._canvas.drawString(x, y, text)
        self._painted = True

    def draw_image(self, image: ImageReader, x: float, y: float, width: float, height: float) -> None:
        self._canvas.drawImage(image, x, y, width=width, height=height, mask="auto")
        self._painted = True

    def close(self) -> None:
        if not self._painted:
            return
        self._canvas.showPage()
        self._canvas.save()
        self._packet.seek(0)
        overlay_page = PdfReader(self._packet).pages[0]
        self.page.merge_page(overlay_page)


def text_width_budget(width: float | None, padding_x: float) -> float | None:
    if width is None or width <= 0:
        return None
    if width > 2 * padding_x:
        return width - 2 * padding_x
    # Padding would swallow the box; keep half of it.
    return width * 0.5


def baseline_for(
    rect: RenderRect,
    font_name: str,
    font_size: float,
    align: VerticalAlign,
    padding_y: float = 0.0,
) -> float:
    """PDF y of the text baseline for a single line inside ``rect``.

    ``top`` hangs the line ``padding_y`` below the top edge; ``middle`` puts the
    visual centre of the glyphs on the centre of the box.
    """
    ascent, descent = font_vertical_metrics(font_name, font_size)
    if align is VerticalAlign.TOP:
        return rect.top - padding_y - ascent
    return rect.center_y - (ascent + descent) / 2.0


def group_fields_by_page(
    fields: Iterable[FieldDefinition],
    report: RenderReport,
) -> dict[int, list[FieldDefinition]]:
    by_page: dict[int, list[FieldDefinition]] = defaultdict(list)
    for field_def in fields:
        if field_def is None:
            continue
        if not field_def.is_renderable:
            logger.debug("Skipping field without name, x, y or page: %r", field_def.name)
            report.add(
                FieldOutcome(field_def.name, field_def.page, OutcomeStatus.SKIPPED, "missing name, x, y or page")
            )
            continue
        by_page[field_def.page].append(field_def)
    return by_page


def _draw_checkbox(
    surface: PageSurface,
    field_def: FieldDefinition,
    value: FieldValue,
    options: OverlayOptions,
    stamp: StampImageLoader,
) -> FieldOutcome:
    if not value.is_checked:
        return FieldOutcome(field_def.name, field_def.page, OutcomeStatus.SKIPPED, "not checked")
    image = stamp.get()
    if image is None:
        return FieldOutcome(field_def.name, field_def.page, OutcomeStatus.SKIPPED, "no checkbox image")

    width = field_def.width if field_def.width is not None and field_def.width > 0 else None
    height = field_def.height if field_def.height is not None and field_def.height > 0 else None
    rect = normalize_rect(
        field_def.x,
        field_def.y,
        width,
        height,
        surface.height,
        options.scale,
        default_height=DEFAULT_CHECKBOX_SIZE,
        default_width=DEFAULT_CHECKBOX_SIZE,
    )
    surface.draw_image(image, rect.x, rect.bottom, rect.width, rect.height)
    return FieldOutcome(field_def.name, field_def.page, OutcomeStatus.DRAWN, "checkbox image")


def _draw_text(
    surface: PageSurface,
    field_def: FieldDefinition,
    value: FieldValue,
    options: OverlayOptions,
    font_name: str,
) -> FieldOutcome:
    safe = to_latin1_safe(value.as_text())
    if not safe:
        return FieldOutcome(field_def.name, field_def.page, OutcomeStatus.SKIPPED, "no value")

    width_pt = to_render_units(field_def.width, options.scale)
    fitted = fit_text(
        font_name,
        safe,
        text_width_budget(width_pt, options.padding_x),
        options.font_size,
        options.min_font_size,
    )
    rect = normalize_rect(
        field_def.x,
        field_def.y,
        field_def.width,
        field_def.height,
        surface.height,
        options.scale,
        default_height=fitted.size * DEFAULT_LINE_HEIGHT_FACTOR,
    )
    baseline = baseline_for(rect, font_name, fitted.size, field_def.alignment, options.padding_y)
    surface.draw_text(font_name, fitted.size, rect.x + options.padding_x, baseline, fitted.text)
    return FieldOutcome(
        field_def.name,
        field_def.page,
        OutcomeStatus.DRAWN,
        "truncated" if fitted.truncated else "",
        text=fitted.text,
        font_size=fitted.size,
    )


def _render_page(
    page: PageObject,
    page_fields: list[FieldDefinition],
    values: dict[str, Any] | None,
    options: OverlayOptions,
    font_name: str,
    stamp: StampImageLoader,
) -> list[FieldOutcome]:
    outcomes: list[FieldOutcome] = []
    with PageSurface(page) as surface:
        surface.set_fill_color(normalize_color(options.font_color_rgb, DEFAULT_FONT_COLOR_RGB))
        for field_def in page_fields:
            value = lookup_value(values, field_def.name)
            try:
                if field_def.kind is FieldKind.CHECKBOX:
                    outcome = _draw_checkbox(surface, field_def, value, options, stamp)
                else:
                    outcome = _draw_text(surface, field_def, value, options, font_name)
            except Exception as exc:
                logger.warning("Overlay failed for field '%s': %s", field_def.name, exc)
                outcome = FieldOutcome(field_def.name, field_def.page, OutcomeStatus.FAILED, str(exc))
            outcomes.append(outcome)
    return outcomes


def render(
    document: PdfWriter | None,
    fields: list[FieldDefinition] | None,
    values: dict[str, Any] | None,
    options: OverlayOptions | None,
) -> RenderReport:
    """Draw ``values`` onto ``document`` in place and report what happened to each field.

    Fields missing a name, x, y or page are skipped, as are fields on pages
    the document does not have. A failure while drawing one field is logged
    and recorded; it never aborts the rest of the document.
    """
    report = RenderReport()
    if document is None or not fields or options is None:
        return report

    by_page = group_fields_by_page(fields, report)
    font_name = resolve_font_name(options.font_name)
    stamp = StampImageLoader(options.checkbox_image_path)
    page_count = len(document.pages)

    for page_number in sorted(by_page):
        page_fields = by_page[page_number]
        if page_number > page_count:
            logger.warning("Page %d exceeds document pages (%d), skip overlay", page_number, page_count)
            for field_def in page_fields:
                report.add(
                    FieldOutcome(field_def.name, page_number, OutcomeStatus.SKIPPED, "page out of range")
                )
            continue
        try:
            outcomes = _render_page(
                document.pages[page_number - 1], page_fields, values, options, font_name, stamp
            )
        except Exception as exc:
            logger.warning("Overlay failed for page %d: %s", page_number, exc)
            outcomes = [
                FieldOutcome(f.name, page_number, OutcomeStatus.FAILED, str(exc)) for f in page_fields
            ]
        for outcome in outcomes:
            report.add(outcome)

    return report
