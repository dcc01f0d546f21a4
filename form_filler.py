"""Native AcroForm handling: fill interactive fields by name, or flatten them
so that overlay text drawn afterwards is not hidden under widget backgrounds."""

import logging
from typing import Any

from pypdf import PageObject, PdfWriter
from pypdf.generic import ContentStream, DictionaryObject, IndirectObject, NameObject, StreamObject

from field_definitions import FieldValue

logger = logging.getLogger(__name__)

OFF_STATE = "/Off"
_HIDDEN_FLAG = 2


class NotAFormError(ValueError):
    """Raised when filling is requested for a PDF without an AcroForm."""


def _is_button(field: dict) -> bool:
    return field.get("/FT") == "/Btn"


def checkbox_on_state(field: dict) -> str:
    for state in field.get("/_States_", []) or []:
        if state != OFF_STATE:
            return str(state)
    return "/Yes"


def _update_all_pages(writer: PdfWriter, updates: dict[str, str]) -> None:
    for page in writer.pages:
        if "/Annots" not in page:
            continue
        writer.update_page_form_field_values(page, updates)


def fill_form(writer: PdfWriter, values: dict[str, Any] | None) -> list[str]:
    """Set AcroForm fields from ``values`` (field name -> value).

    Returns the names that have no matching field in the form.
    """
    fields = writer.get_fields()
    if fields is None:
        raise NotAFormError("This PDF is not a form (no AcroForm).")
    if not values:
        return []

    updates: dict[str, str] = {}
    missing: list[str] = []
    for name, raw in values.items():
        field = fields.get(name)
        if field is None:
            logger.warning("No AcroForm field found for name: %s", name)
            missing.append(name)
            continue
        value = FieldValue.of(raw)
        if _is_button(field):
            updates[name] = checkbox_on_state(field) if value.is_checked else OFF_STATE
        else:
            updates[name] = value.as_text()

    if updates:
        _update_all_pages(writer, updates)
    return missing


def _appearance_ref(widget: DictionaryObject) -> IndirectObject | None:
    """Reference to the widget's current normal appearance, or None."""
    appearances = widget.get("/AP")
    if appearances is None:
        return None
    appearances = appearances.get_object()
    if "/N" not in appearances:
        return None
    normal = appearances["/N"]
    if isinstance(normal, StreamObject):
        ref = appearances.raw_get("/N")
    else:
        state = widget.get("/AS")
        if state is None or state not in normal:
            return None
        ref = normal.raw_get(state)
    return ref if isinstance(ref, IndirectObject) else None


def _placement(widget: DictionaryObject, appearance: StreamObject) -> tuple[float, float, float, float]:
    """Scale and offset that map the appearance BBox onto the widget Rect."""
    x1, y1, x2, y2 = (float(v) for v in widget["/Rect"])
    left, bottom = min(x1, x2), min(y1, y2)
    width, height = abs(x2 - x1), abs(y2 - y1)
    bx1, by1, bx2, by2 = (float(v) for v in appearance.get("/BBox", [0, 0, width, height]))
    bbox_w, bbox_h = abs(bx2 - bx1), abs(by2 - by1)
    sx = width / bbox_w if bbox_w else 1.0
    sy = height / bbox_h if bbox_h else 1.0
    return sx, sy, left - min(bx1, bx2) * sx, bottom - min(by1, by2) * sy


def _xobject_dict(page: PageObject) -> DictionaryObject:
    if "/Resources" not in page:
        page[NameObject("/Resources")] = DictionaryObject()
    resources = page["/Resources"].get_object()
    if "/XObject" not in resources:
        resources[NameObject("/XObject")] = DictionaryObject()
    return resources["/XObject"].get_object()


def bake_widget_appearances(page: PageObject) -> int:
    """Draw every visible widget's current appearance into the page content.

    Returns the number of widgets painted.
    """
    if "/Annots" not in page:
        return 0
    xobjects = _xobject_dict(page)
    ops: list[str] = []
    for annot in page["/Annots"].get_object():
        widget = annot.get_object()
        if widget.get("/Subtype") != "/Widget" or "/Rect" not in widget:
            continue
        if int(widget.get("/F", 0)) & _HIDDEN_FLAG:
            continue
        ref = _appearance_ref(widget)
        if ref is None:
            continue
        sx, sy, tx, ty = _placement(widget, ref.get_object())
        name = f"/FlatWidget{len(xobjects)}"
        while name in xobjects:
            name += "_"
        xobjects[NameObject(name)] = ref
        ops.append(f"q {sx:.6g} 0 0 {sy:.6g} {tx:.6g} {ty:.6g} cm {name} Do Q")

    if not ops:
        return 0
    content = page.get_contents()
    existing = content.get_data() if content is not None else b""
    baked = ContentStream(None, None)
    baked.set_data(b"q\n" + existing + b"\nQ\n" + "\n".join(ops).encode("latin-1") + b"\n")
    page.replace_contents(baked)
    return len(ops)


def flatten_form(writer: PdfWriter) -> bool:
    """Bake the current widget appearances into the page content and drop the AcroForm.

    Returns ``True`` when a form was flattened. Failures are logged; the
    document is left usable for the overlay either way.
    """
    try:
        if writer.get_fields() is None:
            return False
        for index, page in enumerate(writer.pages):
            try:
                bake_widget_appearances(page)
            except Exception as exc:
                logger.warning("Could not bake form widgets on page %d: %s", index + 1, exc)
        writer.remove_annotations(subtypes="/Widget")
        del writer.root_object["/AcroForm"]
        logger.debug("AcroForm flattened so overlay text will appear above field backgrounds.")
        return True
    except Exception as exc:
        logger.warning("Could not flatten AcroForm: %s. Overlay will still run.", exc)
        return False
