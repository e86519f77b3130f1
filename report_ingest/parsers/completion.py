import json
from typing import List

from report_ingest.commons.errors import ModelResponseFormatError
from report_ingest.validation.validators import TestObservation, validate_observations_or_raise


def parse_completion(text: str) -> List[TestObservation]:
    """JSON crudo -> observaciones validadas.

    No se quitan fences de markdown: el prompt pide JSON sin bloques de código,
    y una respuesta con ```json ... ``` se considera mal formada.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as ex:
        preview = text[:120].replace("\n", " ")
        raise ModelResponseFormatError(f"El modelo no devolvió JSON válido: {preview!r}") from ex
    return validate_observations_or_raise(payload)
