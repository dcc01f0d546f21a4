import io
import json

import pytest
from pypdf import PdfReader

import form_fill_service
from field_definitions import DefinitionError
from form_fill_service import TemplateLoadError, check, load_template, merge, merge_to_bytes, parse_values
from settings import Settings

DEFINITION = json.dumps(
    {
        "fields": [
            {"name": "Surname", "type": "string", "x": 72, "y": 100, "width": 200, "height": 20, "page": 1},
            {"name": "Agree", "type": "checkbox", "x": 72, "y": 150, "page": 1},
            {"name": "Orphan", "type": "string", "x": 72, "y": 150},
        ]
    }
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        output_dir=tmp_path / "out",
        flatten_before_overlay=True,
        checkbox_checked_image="",
        log_level="INFO",
    )


def test_load_template_rejects_garbage():
    with pytest.raises(TemplateLoadError):
        load_template(b"%PDF-1.4 empty pdf content")
    with pytest.raises(TemplateLoadError):
        load_template(b"")


def test_check_counts_pages_and_fields(blank_pdf_bytes):
    result = check(blank_pdf_bytes, DEFINITION)
    assert result.success
    assert result.template_pages == 1
    assert result.definition_fields == 3


def test_check_rejects_bad_definition(blank_pdf_bytes):
    with pytest.raises(DefinitionError):
        check(blank_pdf_bytes, "{oops")


def test_merge_with_mock_values_saves_pdf(blank_pdf_bytes, settings):
    result = merge(blank_pdf_bytes, DEFINITION, settings)
    output = PdfReader(result.output_path)
    assert result.output_path.startswith(str(settings.output_dir.resolve()))
    assert "Smith" in output.pages[0].extract_text()
    assert [o.name for o in result.report.drawn] == ["Surname"]
    assert result.definition_fields == 3


def test_merge_with_explicit_values(blank_pdf_bytes, settings):
    pdf_bytes = merge_to_bytes(blank_pdf_bytes, DEFINITION, settings, {"Surname": "Nguyen"})
    text = PdfReader(io.BytesIO(pdf_bytes)).pages[0].extract_text()
    assert "Nguyen" in text
    assert "Smith" not in text


def test_merge_flattens_forms_before_overlay(form_pdf_bytes, settings, monkeypatch):
    calls = []
    monkeypatch.setattr(form_fill_service, "flatten_form", lambda writer: calls.append(writer) or True)
    merge_to_bytes(form_pdf_bytes, DEFINITION, settings)
    assert len(calls) == 1


def test_parse_values():
    assert parse_values(None) is None
    assert parse_values("  ") is None
    assert parse_values('{"A": 1}') == {"A": 1}
    with pytest.raises(ValueError):
        parse_values("[1]")
