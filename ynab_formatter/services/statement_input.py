"""
Purpose:
- Turn an uploaded statement into something a provider can consume.
- Images: confirm they decode, fix phone-camera EXIF rotation, base64 for the API.
- PDFs: pull the text layer page by page (pypdf) for a text-only prompt.
"""

from __future__ import annotations
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Tuple
import base64
import mimetypes
import re

from PIL import Image, ImageOps, UnidentifiedImageError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

EXIF_ORIENTATION = 0x0112
PNG_SAFE_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I"}
DATA_URL = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)


class UnsupportedUpload(ValueError):
    """Upload can't be turned into a provider request (maps to HTTP 400)."""


@dataclass
class StatementInput:
    kind: str                       # "image" | "text"
    filename: str = ""
    mime_type: str = ""
    base64_data: str = ""
    text: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.kind == "image"

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"


def guess_content_type(content_type: Optional[str], filename: Optional[str]) -> str:
    ct = (content_type or "").split(";")[0].strip().lower()
    if ct and ct != "application/octet-stream":
        return ct
    guessed, _ = mimetypes.guess_type(filename or "")
    return (guessed or ct or "").lower()


def _upright_image(raw: bytes, mime_type: str) -> Tuple[bytes, str]:
    """
    Decode to make sure it's a real image; re-encode as PNG only when EXIF says it's rotated.
    """
    try:
        img = Image.open(BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise UnsupportedUpload("Could not read image file") from e

    orientation = img.getexif().get(EXIF_ORIENTATION, 1)
    if orientation in (None, 1):
        return raw, mime_type

    img = ImageOps.exif_transpose(img)
    if img.mode not in PNG_SAFE_MODES:
        img = img.convert("RGB")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue(), "image/png"


def extract_pdf_texts(raw: bytes) -> List[Tuple[int, str]]:
    """Return list of (page_index, page_text)."""
    try:
        reader = PdfReader(BytesIO(raw))
        pages: List[Tuple[int, str]] = []
        for i, page in enumerate(reader.pages):
            pages.append((i, (page.extract_text() or "").strip()))
    except PdfReadError as e:
        raise UnsupportedUpload("Could not read PDF file") from e
    return pages


def prepare_statement(raw: bytes, content_type: Optional[str], filename: Optional[str] = None) -> StatementInput:
    """
    Build a StatementInput from raw upload bytes.
    Raises UnsupportedUpload with a user-facing message.
    """
    if not raw:
        raise UnsupportedUpload("No file provided")

    ct = guess_content_type(content_type, filename)
    name = filename or ""

    if ct.startswith("image/"):
        data, mime = _upright_image(raw, ct)
        return StatementInput(
            kind="image",
            filename=name,
            mime_type=mime,
            base64_data=base64.b64encode(data).decode("ascii"),
        )

    if ct == "application/pdf":
        pages = extract_pdf_texts(raw)
        chunks = [f"--- Page {i + 1} ---\n{txt}" for i, txt in pages if txt]
        if not chunks:
            raise UnsupportedUpload(
                "No text could be extracted from the PDF; upload a photo or scan of the statement instead"
            )
        return StatementInput(kind="text", filename=name, mime_type=ct, text="\n\n".join(chunks))

    raise UnsupportedUpload("Only image files (PNG/JPG) or PDF statements are supported")


def statement_from_data_url(data_url: str) -> StatementInput:
    """
    Arena uploads arrive pre-encoded as `data:image/...;base64,...`; pass them through as-is.
    """
    m = DATA_URL.match((data_url or "").strip())
    if not m:
        raise UnsupportedUpload("Image data must be a base64 data URL")
    mime = m.group(1).lower()
    if not mime.startswith("image/"):
        raise UnsupportedUpload("Only image files (PNG/JPG) are supported")
    return StatementInput(kind="image", mime_type=mime, base64_data=m.group(2))
