import io

import pytest
from pypdf import PdfReader, PdfWriter
from pypdf.generic import NameObject, NumberObject

from conftest import make_form_pdf
from form_filler import NotAFormError, bake_widget_appearances, checkbox_on_state, fill_form, flatten_form


def _writer(data: bytes) -> PdfWriter:
    return PdfWriter(clone_from=PdfReader(io.BytesIO(data)))


def _reread(writer: PdfWriter) -> PdfReader:
    packet = io.BytesIO()
    writer.write(packet)
    packet.seek(0)
    return PdfReader(packet)


def test_fill_form_sets_text_field_and_reports_unknown_names(form_pdf_bytes):
    writer = _writer(form_pdf_bytes)
    missing = fill_form(writer, {"first name": "John", "nickname": "JJ"})
    assert missing == ["nickname"]
    fields = _reread(writer).get_fields()
    assert fields["first name"]["/V"] == "John"


def test_fill_form_checks_checkbox(form_pdf_bytes):
    writer = _writer(form_pdf_bytes)
    fill_form(writer, {"agree": True})
    assert _reread(writer).get_fields()["agree"]["/V"] != "/Off"


def test_fill_form_requires_acroform(blank_pdf_bytes):
    with pytest.raises(NotAFormError):
        fill_form(_writer(blank_pdf_bytes), {"first name": "John"})


def test_fill_form_with_no_values_is_a_no_op(form_pdf_bytes):
    assert fill_form(_writer(form_pdf_bytes), {}) == []


def test_checkbox_on_state():
    assert checkbox_on_state({"/_States_": ["/Off", "/On"]}) == "/On"
    assert checkbox_on_state({}) == "/Yes"


def test_flatten_form_removes_acroform(form_pdf_bytes):
    writer = _writer(form_pdf_bytes)
    assert flatten_form(writer) is True
    assert "/AcroForm" not in writer.root_object
    assert _reread(writer).get_fields() is None


def test_flatten_form_without_form(blank_pdf_bytes):
    assert flatten_form(_writer(blank_pdf_bytes)) is False


def _widget(writer: PdfWriter, name: str):
    for annot in writer.pages[0]["/Annots"]:
        widget = annot.get_object()
        if widget.get("/T") == name:
            return widget
    raise KeyError(name)


def _xobject_ids(writer: PdfWriter) -> set[int]:
    xobjects = writer.pages[0]["/Resources"]["/XObject"]
    return {xobjects.raw_get(name).idnum for name in xobjects}


def test_flatten_form_keeps_checked_checkbox_appearance():
    writer = _writer(make_form_pdf(checked=True))
    on_appearance = _widget(writer, "agree")["/AP"]["/N"].raw_get("/Yes")
    assert flatten_form(writer) is True
    assert on_appearance.idnum in _xobject_ids(writer)
    assert "/Annots" not in writer.pages[0] or not writer.pages[0]["/Annots"]


def test_flatten_form_keeps_unfilled_widget_backgrounds(form_pdf_bytes):
    writer = _writer(form_pdf_bytes)
    off_appearance = _widget(writer, "agree")["/AP"]["/N"].raw_get("/Off")
    text_appearance = _widget(writer, "first name")["/AP"].raw_get("/N")
    flatten_form(writer)
    assert {off_appearance.idnum, text_appearance.idnum} <= _xobject_ids(writer)
    assert writer.pages[0].get_contents().get_data().count(b" Do") == 2


def test_flatten_form_keeps_filled_text_and_page_content(form_pdf_bytes):
    writer = _writer(form_pdf_bytes)
    fill_form(writer, {"first name": "John"})
    flatten_form(writer)
    text = _reread(writer).pages[0].extract_text()
    assert "Application form" in text
    assert "John" in text


def test_bake_skips_hidden_widgets(form_pdf_bytes):
    writer = _writer(form_pdf_bytes)
    _widget(writer, "agree")[NameObject("/F")] = NumberObject(2)
    assert bake_widget_appearances(writer.pages[0]) == 1
