# report_ingest/services/report_service.py
import asyncio
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from report_ingest.commons.classifier import classify, now_iso
from report_ingest.commons.errors import PatientNotFoundError, error_kind
from report_ingest.commons.logger import logger
from report_ingest.helpers.llm_client import build_prompt
from report_ingest.helpers.pdf_text import extract_text
from report_ingest.parsers.base import location_from_record, patient_id_from_key
from report_ingest.parsers.completion import parse_completion
from report_ingest.parsers.models import ClassifiedReport
from report_ingest.validation.validators import TestObservation

# Estados terminales de un record
NOTIFIED = "notified"
FAILED = "failed"
PERSISTED_NOT_NOTIFIED = "persisted_not_notified"  # filas insertadas, email no enviado


@dataclass
class RecordOutcome:
    bucket: Optional[str] = None
    key: Optional[str] = None
    state: str = FAILED
    stage: str = "receive"
    patient_id: Optional[int] = None
    persisted: int = 0
    in_range: int = 0
    out_of_range: int = 0
    skipped: int = 0
    message_id: Optional[str] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == NOTIFIED


@dataclass
class BatchSummary:
    outcomes: List[RecordOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[RecordOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "partial_failure" if self.failed else "ok",
            "processed": len(self.outcomes),
            "failed": [
                {
                    "key": o.key,
                    "stage": o.stage,
                    "state": o.state,
                    "error_kind": o.error_kind,
                    "message": o.error,
                }
                for o in self.failed
            ],
            "records": [asdict(o) for o in self.outcomes],
        }


class ReportService:
    """Pipeline por record: fetch -> extract -> complete -> parse -> identify
    -> classify (+insert) -> lookup -> notify.

    Los clientes (store, model, repository, mailer) se construyen una vez por
    proceso y se inyectan aquí; cada llamada bloqueante se espera con
    asyncio.to_thread antes de seguir al siguiente paso.
    """

    def __init__(self, store, model, repository, mailer):
        self.store = store
        self.model = model
        self.repository = repository
        self.mailer = mailer

    async def process_event(self, event: Dict[str, Any], request_id: str = "local") -> Dict[str, Any]:
        records = (event or {}).get("Records") or []
        logger.info(f"Evento recibido | RID: {request_id} | Records: {len(records)}")

        summary = BatchSummary()
        # Secuencial; un record fallido no detiene a los siguientes
        for record in records:
            summary.outcomes.append(await self.process_record(record))

        if summary.failed:
            logger.warning(
                f"Lote terminado con fallos parciales | RID: {request_id} | "
                f"Fallidos: {len(summary.failed)}/{len(summary.outcomes)}"
            )
        else:
            logger.info(f"Lote terminado OK | RID: {request_id} | Records: {len(summary.outcomes)}")
        return summary.to_dict()

    async def process_record(self, record: Dict[str, Any]) -> RecordOutcome:
        outcome = RecordOutcome()
        try:
            loc = location_from_record(record)
            outcome.bucket, outcome.key = loc.bucket, loc.key
            logger.info(f"Procesando archivo del bucket: {loc.bucket}, key: {loc.key}")
            await self._run(loc.bucket, loc.key, outcome)
        except Exception as ex:
            outcome.error_kind = error_kind(ex)
            outcome.error = str(ex)
            outcome.state = PERSISTED_NOT_NOTIFIED if outcome.persisted else FAILED
            logger.exception(
                f"Fallo procesando {outcome.key} en etapa '{outcome.stage}' "
                f"[{outcome.error_kind}]: {ex}"
            )
        return outcome

    async def _run(self, bucket: str, key: str, outcome: RecordOutcome) -> None:
        outcome.stage = "fetch"
        data = await asyncio.to_thread(self.store.fetch, bucket, key)

        outcome.stage = "extract"
        text = await asyncio.to_thread(extract_text, data)
        logger.info(f"PDF parseado ({len(text)} chars). Primeros 100: {text[:100]!r}")

        outcome.stage = "complete"
        raw = await asyncio.to_thread(self.model.complete, build_prompt(text))

        outcome.stage = "parse"
        observations = parse_completion(raw)
        logger.info(f"Modelo devolvió {len(observations)} resultado(s)")

        outcome.stage = "identify"
        patient_id = patient_id_from_key(key)
        outcome.patient_id = patient_id

        outcome.stage = "classify"
        report = await self.classify_and_persist(observations, patient_id, outcome)
        logger.info(
            f"Insertados {len(report.in_range)} en rango y "
            f"{len(report.out_of_range)} fuera de rango (omitidos: {report.skipped})"
        )

        outcome.stage = "lookup"
        email = await asyncio.to_thread(self.repository.find_patient_email, patient_id)
        if email is None:
            raise PatientNotFoundError(patient_id)
        logger.info(f"Email de usuario encontrado para {patient_id}: {email}")

        outcome.stage = "notify"
        outcome.message_id = await asyncio.to_thread(
            self.mailer.send, email, report.out_of_range, report.in_range
        )
        outcome.state = NOTIFIED

    async def classify_and_persist(
        self, observations: List[TestObservation], patient_id: int, outcome: RecordOutcome
    ) -> ClassifiedReport:
        report = ClassifiedReport(patient_id=patient_id)
        now = now_iso()
        for obs in observations:
            test = classify(obs, patient_id, now)
            if test is None:
                report.skipped += 1
                outcome.skipped += 1
                reason = "sin límites" if not obs.has_bounds else "valor no numérico"
                logger.warning(f"Omitido '{obs.test_type}' ({reason}): value={obs.value!r}")
                continue

            if test.in_range:
                report.in_range.append(test)
            else:
                report.out_of_range.append(test)

            await asyncio.to_thread(self.repository.insert_test, test)
            outcome.persisted += 1
            if test.in_range:
                outcome.in_range += 1
            else:
                outcome.out_of_range += 1
        return report
