import json

import pytest

from field_definitions import (
    ABSENT,
    DefinitionError,
    FieldDefinition,
    FieldKind,
    FieldValue,
    ValueKind,
    VerticalAlign,
    lookup_value,
    parse_definition,
)


def test_parse_definition_reads_fields_and_settings():
    raw = json.dumps(
        {
            "fields": [
                {"name": "A", "type": "string", "x": 72, "y": 700.5, "width": 200, "height": 24, "page": 1},
                {"name": "B", "type": "CheckBox", "x": 10, "y": 10, "page": 2, "verticalAlign": "TOP"},
            ],
            "scale": 2,
            "checkboxSymbol": "resource:tick.png",
            "unknown": "ignored",
        }
    )
    definition = parse_definition(raw.encode("utf-8"))
    assert definition.field_count == 2
    first, second = definition.fields
    assert first.x == 72.0 and isinstance(first.x, float)
    assert first.kind is FieldKind.TEXT
    assert first.alignment is VerticalAlign.MIDDLE
    assert second.kind is FieldKind.CHECKBOX
    assert second.alignment is VerticalAlign.TOP
    assert definition.scale == 2.0
    assert definition.checkbox_checked_image == "resource:tick.png"


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '{"fields": "nope"}'])
def test_parse_definition_rejects_bad_input(raw):
    with pytest.raises(DefinitionError):
        parse_definition(raw)


@pytest.mark.parametrize(
    "kwargs, renderable",
    [
        ({"name": "A", "x": 1, "y": 2, "page": 1}, True),
        ({"name": "", "x": 1, "y": 2, "page": 1}, False),
        ({"x": 1, "y": 2, "page": 1}, False),
        ({"name": "A", "y": 2, "page": 1}, False),
        ({"name": "A", "x": 1, "page": 1}, False),
        ({"name": "A", "x": 1, "y": 2}, False),
        ({"name": "A", "x": 1, "y": 2, "page": 0}, False),
    ],
)
def test_is_renderable(kwargs, renderable):
    assert FieldDefinition(**kwargs).is_renderable is renderable


@pytest.mark.parametrize("field_type", ["checkbox", "boolean", "BOOLEAN", " Checkbox "])
def test_checkbox_kinds(field_type):
    assert FieldDefinition(type=field_type).kind is FieldKind.CHECKBOX


@pytest.mark.parametrize("field_type", [None, "string", "date", "signature"])
def test_other_kinds_are_text(field_type):
    assert FieldDefinition(type=field_type).kind is FieldKind.TEXT


def test_field_value_variants():
    assert FieldValue.of(None) is ABSENT
    assert FieldValue.of(True).kind is ValueKind.BOOLEAN
    assert FieldValue.of(1).kind is ValueKind.NUMBER
    assert FieldValue.of(2.5).kind is ValueKind.NUMBER
    assert FieldValue.of("x").kind is ValueKind.TEXT


def test_field_value_text():
    assert FieldValue.of(True).as_text() == "true"
    assert FieldValue.of(False).as_text() == "false"
    assert FieldValue.of(123).as_text() == "123"
    assert FieldValue.of(1.5).as_text() == "1.5"
    assert FieldValue.of("hello").as_text() == "hello"
    assert ABSENT.as_text() == ""


def test_is_checked_only_for_boolean_true():
    assert FieldValue.of(True).is_checked
    assert not FieldValue.of(False).is_checked
    assert not FieldValue.of("true").is_checked
    assert not FieldValue.of(1).is_checked


def test_lookup_value():
    values = {"A": "x"}
    assert lookup_value(values, "A").as_text() == "x"
    assert lookup_value(values, "missing") is ABSENT
    assert lookup_value(None, "A") is ABSENT
    assert lookup_value(values, None) is ABSENT


@pytest.mark.parametrize(
    "page, expected",
    [(1.5, 1), (2.0, 2), ("3", 3), ("2.9", 2), ("first", None), (True, None), (float("nan"), None)],
)
def test_page_is_truncated_or_left_unplaced(page, expected):
    assert FieldDefinition(page=page).page == expected


def test_malformed_page_does_not_reject_the_definition():
    raw = json.dumps(
        {
            "fields": [
                {"name": "A", "x": 1, "y": 2, "page": 1.5},
                {"name": "B", "x": 1, "y": 2, "page": "cover"},
            ]
        }
    )
    first, second = parse_definition(raw).fields
    assert first.page == 1 and first.is_renderable
    assert second.page is None and not second.is_renderable
