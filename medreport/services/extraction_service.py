"""Upload text extraction.

Dispatches on the declared media type only; the file content is not sniffed.
"""
from __future__ import annotations

import os
import shutil
from typing import List, Tuple

import PyPDF2
import docx
import pytesseract
from PIL import Image

from medreport.errors import ExtractionFailed

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Ensure pytesseract can find the tesseract binary
if shutil.which("tesseract") is None:
    for cand in ("/usr/bin/tesseract", "/usr/local/bin/tesseract", "/opt/homebrew/bin/tesseract"):
        if os.path.exists(cand):
            pytesseract.pytesseract.tesseract_cmd = cand
            break


def normalize_media_type(media_type: str) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


def extract_pdf_text(path: str) -> str:
    reader = PyPDF2.PdfReader(path)
    parts: List[str] = []
    for page in reader.pages:
        parts.append(page.extract_text() or "")
    return "\n".join(parts).strip()


def extract_docx_text(path: str) -> str:
    document = docx.Document(path)
    return "\n".join(p.text for p in document.paragraphs).strip()


def extract_image_text(path: str, lang: str = "eng") -> str:
    with Image.open(path) as img:
        return (pytesseract.image_to_string(img, lang=lang) or "").strip()


def read_plain_text(path: str) -> str:
    with open(path, "rb") as f:
        return f.read().decode("utf-8", errors="replace")


def extract_text(path: str, media_type: str, ocr_lang: str = "eng") -> str:
    kind = normalize_media_type(media_type)
    try:
        if kind == PDF_MEDIA_TYPE:
            return extract_pdf_text(path)
        if kind == DOCX_MEDIA_TYPE:
            return extract_docx_text(path)
        if kind.startswith("image/"):
            return extract_image_text(path, lang=ocr_lang)
        return read_plain_text(path)
    except Exception as e:
        raise ExtractionFailed(f"Could not extract text from {kind or 'file'}: {type(e).__name__}") from e


def ocr_ready() -> Tuple[bool, str]:
    try:
        _ = pytesseract.get_tesseract_version()
    except Exception as e:
        return False, f"tesseract not available: {e}"
    return True, ""
