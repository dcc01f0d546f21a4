"""Load template -> parse definition -> prepare values -> overlay render -> save."""

import io
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from field_definitions import FieldsDefinition, parse_definition
from form_filler import fill_form, flatten_form
from mock_data import prepare_mock_data
from overlay_options import resolve_overlay_options
from overlay_renderer import RenderReport, render
from settings import Settings

logger = logging.getLogger(__name__)


class TemplateLoadError(ValueError):
    """Raised when the template bytes are not a readable PDF with pages."""


@dataclass(frozen=True)
class MergeCheckResult:
    template_pages: int
    definition_fields: int
    success: bool = True
    message: str = "Template and definition parsed successfully."


@dataclass(frozen=True)
class MergeResult:
    output_path: str
    template_pages: int
    definition_fields: int
    report: RenderReport = field(default_factory=RenderReport)
    success: bool = True
    message: str = "Filled PDF saved successfully."


def load_template(data: bytes) -> PdfWriter:
    """Parse PDF bytes into a writable document. The caller owns the result."""
    try:
        reader = PdfReader(io.BytesIO(data))
        page_count = len(reader.pages)
        writer = PdfWriter(clone_from=reader) if page_count > 0 else None
    except (PyPdfError, ValueError, OSError, KeyError) as exc:
        raise TemplateLoadError(f"Invalid PDF template or stream error: {exc}") from exc
    if writer is None:
        raise TemplateLoadError("PDF template has no pages.")
    return writer


def parse_values(raw: str | bytes | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8-sig")
    if not raw.strip():
        return None
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Field values must be a JSON object of name -> value.")
    return data


def check(template: bytes, definition: bytes | str) -> MergeCheckResult:
    writer = load_template(template)
    fields_definition = parse_definition(definition)
    return MergeCheckResult(
        template_pages=len(writer.pages),
        definition_fields=fields_definition.field_count,
    )


def render_document(
    writer: PdfWriter,
    fields_definition: FieldsDefinition,
    values: dict[str, Any] | None,
    settings: Settings,
) -> RenderReport:
    if values is None:
        values = prepare_mock_data(fields_definition)
    if settings.flatten_before_overlay:
        flatten_form(writer)
    options = resolve_overlay_options(fields_definition, settings.checkbox_checked_image)
    report = render(writer, fields_definition.fields or [], values, options)
    logger.info(
        "Overlay rendered: %d drawn, %d skipped, %d failed",
        len(report.drawn),
        len(report.skipped),
        len(report.failed),
    )
    return report


def save_to_output_dir(writer: PdfWriter, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / f"filled-{uuid.uuid4()}.pdf"
    with target.open("wb") as f:
        writer.write(f)
    return target.resolve()


def to_bytes(writer: PdfWriter) -> bytes:
    packet = io.BytesIO()
    writer.write(packet)
    return packet.getvalue()


def merge(
    template: bytes,
    definition: bytes | str,
    settings: Settings,
    values: dict[str, Any] | None = None,
) -> MergeResult:
    """Render ``values`` (mock values when ``None``) onto the template and save the result."""
    writer = load_template(template)
    fields_definition = parse_definition(definition)
    report = render_document(writer, fields_definition, values, settings)
    output_path = save_to_output_dir(writer, settings.output_dir)
    logger.info("Wrote filled PDF: %s", output_path)
    return MergeResult(
        output_path=str(output_path),
        template_pages=len(writer.pages),
        definition_fields=fields_definition.field_count,
        report=report,
    )


def merge_to_bytes(
    template: bytes,
    definition: bytes | str,
    settings: Settings,
    values: dict[str, Any] | None = None,
) -> bytes:
    writer = load_template(template)
    fields_definition = parse_definition(definition)
    render_document(writer, fields_definition, values, settings)
    return to_bytes(writer)


def fill(template: bytes, values: dict[str, Any]) -> tuple[bytes, list[str]]:
    """Fill the template's own form fields; returns the PDF bytes and unknown field names."""
    writer = load_template(template)
    missing = fill_form(writer, values)
    return to_bytes(writer), missing
