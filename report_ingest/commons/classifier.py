import math
from datetime import datetime, timezone
from typing import Optional, Union

from report_ingest.parsers.models import ClassifiedTest
from report_ingest.validation.validators import TestObservation


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_number(raw: Optional[Union[float, str]]) -> Optional[float]:
    """float o None si el valor es cualitativo ("Positive", "Reactivo", ...)."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        num = float(raw)
    else:
        try:
            num = float(raw.strip())
        except ValueError:
            return None
    return num if math.isfinite(num) else None


def is_in_range(value: float, minlimit: float, maxlimit: float) -> bool:
    # Inclusivo en ambos extremos
    return minlimit <= value <= maxlimit


def classify(obs: TestObservation, patient_id: int, now: str) -> Optional[ClassifiedTest]:
    """None si la observación no se puede clasificar (sin límites o sin valor numérico).

    test_timestamp usa `now`, no el timestamp que reporta el modelo.
    """
    if not obs.has_bounds:
        return None
    value = to_number(obs.value)
    if value is None:
        return None
    return ClassifiedTest(
        patient_id=patient_id,
        test_type=obs.test_type,
        value=value,
        minlimit=obs.minlimit,
        maxlimit=obs.maxlimit,
        unit=obs.unit,
        test_timestamp=now,
        in_range=is_in_range(value, obs.minlimit, obs.maxlimit),
        created_at=now,
    )
