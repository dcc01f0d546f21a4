from typing import Any

from field_definitions import FieldsDefinition

MOCK_STRING = "test"
MOCK_NUMBER = 123
MOCK_DATE = "2025-01-01"
MOCK_BOOLEAN = True


def _type_is(field_type: str | None, expected: str) -> bool:
    return field_type is not None and field_type.strip().lower() == expected


def _date_value(name: str) -> str:
    if "dob" in name or "date of birth" in name:
        return "1990-01-01"
    if "next review" in name:
        return "2025-06-01"
    if "appointment" in name:
        return "2025-03-15"
    if "drug test" in name or "test date" in name:
        return "2025-02-01"
    return MOCK_DATE


def mock_value_for(name: str | None, field_type: str | None) -> Any:
    """Plausible-looking value for a field, chosen from its name first and its type second."""
    lowered = (name or "").lower()

    # People
    if "first name" in lowered:
        return "John"
    if "family name" in lowered or "surname" in lowered:
        return "Smith"
    if "worker" in lowered and "name" in lowered:
        return "Alex Railworker"
    if "doctor" in lowered and "appointment" in lowered:
        return "Dr Taylor"
    if "doctor" in lowered:
        return "Dr Smith"
    if "operator" in lowered and "rail" in lowered:
        return "ACME Rail Pty Ltd"

    # Contact details
    if "email" in lowered:
        return "worker@example.com"
    if "phone" in lowered or "facsimile" in lowered or "fax" in lowered:
        return "+61 400 123 456"
    if "address" in lowered:
        return "123 Sample Street, Sydney NSW 2000"

    if _type_is(field_type, "date"):
        return _date_value(lowered)
    if _type_is(field_type, "number"):
        return MOCK_NUMBER
    if _type_is(field_type, "boolean") or _type_is(field_type, "checkbox"):
        return MOCK_BOOLEAN
    return MOCK_STRING


def prepare_mock_data(definition: FieldsDefinition | None) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if definition is None or not definition.fields:
        return result
    for field_def in definition.fields:
        if field_def.name is None:
            continue
        result[field_def.name] = mock_value_for(field_def.name, field_def.type)
    return result
