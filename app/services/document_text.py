import io
import logging
import os
from typing import Optional

import PyPDF2
import docx

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 50_000

def extract_text(content: bytes, filename: str) -> Optional[str]:
    """
    Extract plain text from a PDF or DOCX payload.
    Best-effort: returns None when the format is unknown or parsing fails.
    """
    file_ext = os.path.splitext(filename)[1].lower()
    text = ""

    try:
        if file_ext == ".pdf":
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(content))
            for page in pdf_reader.pages:
                text += (page.extract_text() or "") + "\n"

        elif file_ext == ".docx":
            doc = docx.Document(io.BytesIO(content))
            for paragraph in doc.paragraphs:
                text += paragraph.text + "\n"

        else:
            return None
    except Exception as e:
        logger.warning(f"Text extraction failed for {filename}: {e}")
        return None

    text = text.strip()
    return text[:MAX_TEXT_CHARS] or None
