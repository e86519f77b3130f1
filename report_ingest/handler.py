"""AWS Lambda entry point: un evento S3 (ObjectCreated) por invocación."""
import asyncio
from typing import Any, Dict, Optional

from report_ingest.commons.config import load_settings
from report_ingest.commons.logger import setup_logging
from report_ingest.commons.types import Settings
from report_ingest.helpers.llm_client import CompletionClient
from report_ingest.helpers.mailer import ReportMailer
from report_ingest.helpers.object_store import S3ObjectStore
from report_ingest.helpers.repository import ReportRepository, make_engine
from report_ingest.services.report_service import ReportService

_service: Optional[ReportService] = None


def build_service(settings: Settings, store=None) -> ReportService:
    return ReportService(
        store=store or S3ObjectStore(region=settings.storage.region),
        model=CompletionClient(settings.model),
        repository=ReportRepository(make_engine(settings.database)),
        mailer=ReportMailer(settings.mail),
    )


def get_service() -> ReportService:
    # Clientes a nivel de proceso: se reutilizan en invocaciones "warm"
    global _service
    if _service is None:
        settings = load_settings()
        setup_logging(settings.logging.root, settings.logging.level)
        _service = build_service(settings)
    return _service


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    request_id = getattr(context, "aws_request_id", "local")
    return asyncio.run(get_service().process_event(event, request_id=request_id))
