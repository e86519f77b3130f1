import io
from typing import Optional

from pypdf import PdfReader

from report_ingest.commons.errors import ExtractionFailure, FetchFailure


def extract_text(data: Optional[bytes]) -> str:
    """Texto plano del PDF, páginas unidas por salto de línea."""
    if not data:
        raise FetchFailure("Empty file body from S3")
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as ex:
        # pypdf no limita sus errores a PyPdfError (IndexError, zlib.error, ...)
        raise ExtractionFailure(f"No se pudo extraer texto del PDF: {ex}") from ex
    return "\n".join(pages)
