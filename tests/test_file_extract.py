from io import BytesIO

from pypdf import PdfWriter

from teachgen.services import file_extract
from teachgen.services.file_extract import extract_text_from_file


def test_text_file_is_cleaned():
    data = "\ufeffLine one\r\nLine two\r\n".encode("utf-8")
    assert extract_text_from_file("notes.txt", data, "text/plain") == "Line one\nLine two"


def test_non_utf8_text_falls_back_to_latin1():
    assert extract_text_from_file("notes.txt", "café".encode("latin-1")) == "café"


def test_blank_pdf_yields_empty_text():
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buf = BytesIO()
    writer.write(buf)
    assert extract_text_from_file("blank.pdf", buf.getvalue(), "application/pdf") == ""


def test_unreadable_pdf_is_read_as_text(monkeypatch):
    def broken(data):
        raise ValueError("bad xref")

    monkeypatch.setattr(file_extract, "_extract_pdf", broken)
    assert extract_text_from_file("source.pdf", b"plain words", "application/pdf") == "plain words"
