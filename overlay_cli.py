import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from field_definitions import parse_definition
from form_fill_service import load_template, render_document, to_bytes
from form_filler import fill_form
from mock_data import prepare_mock_data
from overlay_renderer import OutcomeStatus
from settings import load_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Overlay field values onto a PDF template at the positions given by a field definition JSON."
    )
    parser.add_argument("--template", required=True, help="Path to the template PDF.")
    parser.add_argument("--fields", help="Path to the field definition JSON (required unless --fill-form).")
    parser.add_argument("--output", required=True, help="Output PDF path.")
    parser.add_argument("--data-json", help="Path to JSON file with field values (name -> value).")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Generate plausible mock values from field names and types instead of --data-json.",
    )
    parser.add_argument(
        "--checkbox-image",
        help="Image stamped on checked checkbox/boolean fields (file path or resource:<name>).",
    )
    parser.add_argument(
        "--scale",
        type=float,
        help="Input units per PDF point; overrides the definition's scale.",
    )
    parser.add_argument(
        "--no-flatten",
        action="store_true",
        help="Keep the template's AcroForm instead of flattening it before the overlay.",
    )
    parser.add_argument(
        "--fill-form",
        action="store_true",
        help="Fill the template's own form fields by name instead of drawing an overlay.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log per-field diagnostics.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level="DEBUG" if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.mock and args.data_json:
        raise ValueError("Use either --mock or --data-json, not both.")

    values = None
    if args.data_json:
        values = json.loads(Path(args.data_json).read_text(encoding="utf-8"))
    elif not args.mock and not args.fill_form:
        raise ValueError("Provide --data-json or use --mock.")

    writer = load_template(Path(args.template).read_bytes())
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if args.fill_form:
        if values is None and args.fields:
            values = prepare_mock_data(parse_definition(Path(args.fields).read_bytes()))
        missing = fill_form(writer, values or {})
        for name in missing:
            print(f"[WARN] No form field named '{name}'.")
    else:
        if not args.fields:
            raise ValueError("Provide --fields.")
        fields_definition = parse_definition(Path(args.fields).read_bytes())
        if args.scale is not None:
            fields_definition = fields_definition.model_copy(update={"scale": args.scale})
        if args.checkbox_image:
            settings = replace(settings, checkbox_checked_image=args.checkbox_image)
        if args.no_flatten:
            settings = replace(settings, flatten_before_overlay=False)
        report = render_document(writer, fields_definition, values, settings)
        for outcome in report.outcomes:
            if args.verbose and outcome.status is not OutcomeStatus.DRAWN:
                print(f"  {outcome.name!r} (page {outcome.page}): {outcome.status.value} {outcome.detail}")
        print(
            f"Fields: {len(report.drawn)} drawn, {len(report.skipped)} skipped, {len(report.failed)} failed"
        )

    output_path.write_bytes(to_bytes(writer))
    print(f"Wrote: {output_path}")


if __name__ == "__main__":
    main()
