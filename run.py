import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from report_ingest.commons.config import load_settings
from report_ingest.commons.logger import setup_logging
from report_ingest.handler import build_service
from report_ingest.helpers.llm_client import build_prompt
from report_ingest.helpers.object_store import LocalObjectStore
from report_ingest.helpers.pdf_text import extract_text

app = typer.Typer(add_completion=False, help="Medical report ingestion service")


def s3_event(bucket: str, key: str, size: int = 0) -> dict:
    """Evento ObjectCreated:Put mínimo, igual al que entrega S3 a la Lambda."""
    return {
        "Records": [
            {
                "eventVersion": "2.1",
                "eventSource": "aws:s3",
                "eventTime": datetime.now(timezone.utc).isoformat(),
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "s3SchemaVersion": "1.0",
                    "bucket": {"name": bucket, "arn": f"arn:aws:s3:::{bucket}"},
                    "object": {"key": key, "size": size},
                },
            }
        ]
    }


def _echo_summary(summary: dict):
    typer.echo(json.dumps(summary, ensure_ascii=False, indent=2))
    if summary["status"] != "ok":
        raise typer.Exit(code=1)


@app.command()
def invoke(
    bucket: str = typer.Option(..., help="Bucket S3 del reporte"),
    key: str = typer.Option(..., help="Key del objeto (tal como llega en el evento)"),
    settings_path: Optional[str] = typer.Option(None, "--settings", help="settings.yaml alterno"),
):
    """Procesa un reporte ya subido a S3, igual que lo haría la Lambda."""
    settings = load_settings(settings_path)
    logger = setup_logging(settings.logging.root, settings.logging.level)
    logger.info(f"Invocación manual para s3://{bucket}/{key}")
    svc = build_service(settings)
    _echo_summary(asyncio.run(svc.process_event(s3_event(bucket, key), request_id="cli")))


@app.command()
def local(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF local"),
    key: Optional[str] = typer.Option(None, help="Key a simular; por defecto el nombre del archivo"),
    bucket: str = typer.Option("local", help="Bucket a simular"),
    settings_path: Optional[str] = typer.Option(None, "--settings", help="settings.yaml alterno"),
):
    """Procesa un PDF local sin pasar por S3 (modelo, BD y SMTP reales)."""
    settings = load_settings(settings_path)
    logger = setup_logging(settings.logging.root, settings.logging.level)
    object_key = key or path.name
    logger.info(f"Ejecución local de {path} como {bucket}/{object_key}")
    svc = build_service(settings, store=LocalObjectStore(str(path)))
    event = s3_event(bucket, object_key, size=path.stat().st_size)
    _echo_summary(asyncio.run(svc.process_event(event, request_id="local")))


@app.command()
def preview(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF local")):
    """Muestra el prompt que se enviaría al modelo para este PDF."""
    typer.echo(build_prompt(extract_text(path.read_bytes())))


if __name__ == "__main__":
    app()
