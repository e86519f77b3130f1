class IngestError(Exception):
    """Base de los fallos de un record; `kind` es lo que se reporta en el resumen."""

    kind = "IngestError"


class FetchFailure(IngestError):
    kind = "FetchFailure"


class ExtractionFailure(IngestError):
    kind = "ExtractionFailure"


class ModelCallFailure(IngestError):
    kind = "ModelCallFailure"


class ModelResponseFormatError(IngestError):
    kind = "ModelResponseFormatError"


class KeyFormatError(IngestError):
    kind = "KeyFormatError"


class PersistenceFailure(IngestError):
    kind = "PersistenceFailure"


class PatientNotFoundError(IngestError):
    kind = "PatientNotFoundError"

    def __init__(self, patient_id: int):
        super().__init__(f"No user found with ID {patient_id}")
        self.patient_id = patient_id


class NotificationFailure(IngestError):
    kind = "NotificationFailure"


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, IngestError):
        return exc.kind
    return "UnexpectedError"
