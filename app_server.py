import json
import logging
from typing import Any

# load_dotenv() must run before settings are read so .env values reach os.environ.
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import form_fill_service
from field_definitions import DefinitionError
from form_filler import NotAFormError
from form_fill_service import TemplateLoadError
from settings import load_settings

logging.basicConfig(
    level=load_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PDF Overlay Fill API")

# Allow the Vite dev server of the template mapper to reach the API during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "message": "Request validation failed.",
            "detail": exc.errors(),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception for %s", request.url.path, exc_info=exc)
    message = f"{type(exc).__name__}: {str(exc) or '(no message)'}"
    return JSONResponse(
        status_code=500,
        content={"message": message, "error": type(exc).__name__},
    )


def read_upload(upload: UploadFile | None, label: str) -> bytes:
    contents = upload.file.read() if upload is not None else b""
    if not contents:
        raise HTTPException(status_code=400, detail=f"Missing or empty {label} file.")
    return contents


def parse_data_json(data_json: str | None) -> dict[str, Any] | None:
    try:
        return form_fill_service.parse_values(data_json)
    except (json.JSONDecodeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid data JSON: {exc}") from exc


def _template_error(exc: TemplateLoadError) -> HTTPException:
    return HTTPException(status_code=415, detail=str(exc))


def _definition_error(exc: DefinitionError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/pdf/merge-check")
def merge_check(
    template: UploadFile | None = File(None),
    definition: UploadFile | None = File(None),
) -> dict[str, Any]:
    """Parse and validate a template and its field definition without rendering."""
    template_bytes = read_upload(template, "template")
    definition_bytes = read_upload(definition, "definition")
    try:
        result = form_fill_service.check(template_bytes, definition_bytes)
    except TemplateLoadError as exc:
        raise _template_error(exc) from exc
    except DefinitionError as exc:
        raise _definition_error(exc) from exc
    return {
        "success": result.success,
        "message": result.message,
        "templatePages": result.template_pages,
        "definitionFields": result.definition_fields,
    }


@app.post("/api/pdf/merge")
def merge(
    template: UploadFile | None = File(None),
    definition: UploadFile | None = File(None),
    data_json: str | None = Form(None),
) -> dict[str, Any]:
    """Overlay values (mock values unless ``data_json`` is given) and save the PDF to the output directory."""
    template_bytes = read_upload(template, "template")
    definition_bytes = read_upload(definition, "definition")
    values = parse_data_json(data_json)
    try:
        result = form_fill_service.merge(template_bytes, definition_bytes, load_settings(), values)
    except TemplateLoadError as exc:
        raise _template_error(exc) from exc
    except DefinitionError as exc:
        raise _definition_error(exc) from exc
    return {
        "success": result.success,
        "message": result.message,
        "outputPath": result.output_path,
        "templatePages": result.template_pages,
        "definitionFields": result.definition_fields,
        "fieldsDrawn": len(result.report.drawn),
        "fieldsSkipped": len(result.report.skipped),
        "fieldsFailed": len(result.report.failed),
    }


@app.post("/api/pdf/merge-file")
def merge_file(
    template: UploadFile | None = File(None),
    definition: UploadFile | None = File(None),
    data_json: str | None = Form(None),
) -> Response:
    template_bytes = read_upload(template, "template")
    definition_bytes = read_upload(definition, "definition")
    values = parse_data_json(data_json)
    try:
        pdf_bytes = form_fill_service.merge_to_bytes(template_bytes, definition_bytes, load_settings(), values)
    except TemplateLoadError as exc:
        raise _template_error(exc) from exc
    except DefinitionError as exc:
        raise _definition_error(exc) from exc
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="filled.pdf"'},
    )


@app.post("/api/pdf/fill-form")
def fill_form(
    template: UploadFile | None = File(None),
    data_json: str | None = Form(None),
) -> Response:
    """Fill the template's own AcroForm fields by name."""
    template_bytes = read_upload(template, "template")
    values = parse_data_json(data_json) or {}
    try:
        pdf_bytes, missing = form_fill_service.fill(template_bytes, values)
    except TemplateLoadError as exc:
        raise _template_error(exc) from exc
    except NotAFormError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    headers = {"Content-Disposition": 'attachment; filename="filled-form.pdf"'}
    if missing:
        headers["X-Missing-Fields"] = ",".join(missing)
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)
