# report_ingest/validation/validators.py
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, confloat, field_validator

from report_ingest.commons.errors import ModelResponseFormatError


class TestObservation(BaseModel):
    """Una fila de resultado tal como la devuelve el modelo, ya validada."""

    __test__ = False  # evita que pytest la confunda con una clase de tests

    model_config = ConfigDict(extra="ignore")

    test_type: str
    value: Optional[Union[float, str]] = None
    unit: Optional[str] = None
    minlimit: Optional[confloat(allow_inf_nan=False)] = None
    maxlimit: Optional[confloat(allow_inf_nan=False)] = None
    timestamp: Optional[str] = None

    @field_validator("test_type")
    @classmethod
    def _not_empty(cls, v: str):
        if not v or not v.strip():
            raise ValueError("test_type es obligatorio")
        return v.strip()

    @property
    def has_bounds(self) -> bool:
        return self.minlimit is not None and self.maxlimit is not None


_OBSERVATIONS = TypeAdapter(List[TestObservation])


def validate_observations_or_raise(payload: Any) -> List[TestObservation]:
    """Exige un array JSON de objetos con la forma de TestObservation."""
    if not isinstance(payload, list):
        raise ModelResponseFormatError(
            f"Se esperaba un array JSON de resultados, llegó {type(payload).__name__}"
        )
    try:
        return _OBSERVATIONS.validate_python(payload)
    except ValidationError as ve:
        raise ModelResponseFormatError(f"Resultado del modelo con forma inválida: {ve}") from ve
