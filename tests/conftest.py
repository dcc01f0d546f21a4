from __future__ import annotations

import io

import pytest
from PIL import Image
from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

A4_HEIGHT = 842.0


def make_blank_pdf(pages: int = 1, width: float = 595.0, height: float = A4_HEIGHT) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    packet = io.BytesIO()
    writer.write(packet)
    return packet.getvalue()


def make_form_pdf(checked: bool = False) -> bytes:
    packet = io.BytesIO()
    c = canvas.Canvas(packet, pagesize=A4)
    c.drawString(72, 760, "Application form")
    c.acroForm.textfield(name="first name", x=72, y=700, width=200, height=20)
    c.acroForm.checkbox(name="agree", x=72, y=650, size=16, checked=checked)
    c.showPage()
    c.save()
    return packet.getvalue()


def page_text(writer: PdfWriter, index: int = 0) -> str:
    packet = io.BytesIO()
    writer.write(packet)
    packet.seek(0)
    return PdfReader(packet).pages[index].extract_text()


def page_xobjects(writer: PdfWriter, index: int = 0) -> dict:
    resources = writer.pages[index].get("/Resources")
    if resources is None:
        return {}
    xobjects = resources.get_object().get("/XObject")
    return dict(xobjects.get_object()) if xobjects is not None else {}


@pytest.fixture
def blank_writer() -> PdfWriter:
    return PdfWriter(clone_from=PdfReader(io.BytesIO(make_blank_pdf())))


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    return make_blank_pdf()


@pytest.fixture
def form_pdf_bytes() -> bytes:
    return make_form_pdf()


@pytest.fixture
def checkbox_png(tmp_path):
    path = tmp_path / "checked.png"
    image = Image.new("RGBA", (32, 32), (255, 255, 255, 0))
    for i in range(6, 26):
        image.putpixel((i, i), (0, 0, 0, 255))
        image.putpixel((31 - i, i), (0, 0, 0, 255))
    image.save(path, format="PNG")
    return path
