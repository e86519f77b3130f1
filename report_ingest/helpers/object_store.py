from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from report_ingest.commons.errors import FetchFailure
from report_ingest.commons.logger import logger


class S3ObjectStore:
    def __init__(self, client=None, region: Optional[str] = None):
        self.client = client or boto3.client("s3", region_name=region)

    def fetch(self, bucket: str, key: str) -> bytes:
        try:
            obj = self.client.get_object(Bucket=bucket, Key=key)
            body = obj.get("Body")
            # El stream puede cortarse a mitad de lectura
            data = body.read() if body is not None else b""
        except ClientError as ex:
            code = ex.response.get("Error", {}).get("Code", "")
            raise FetchFailure(f"S3 get_object falló ({code}) para s3://{bucket}/{key}") from ex
        except (BotoCoreError, OSError) as ex:
            raise FetchFailure(f"S3 get_object falló para s3://{bucket}/{key}: {ex}") from ex

        logger.info(f"Archivo obtenido de s3://{bucket}/{key} ({len(data)} bytes)")
        return data


class LocalObjectStore:
    """Sirve el mismo PDF local para cualquier key (ejecución local sin S3)."""

    def __init__(self, path: str):
        self.path = Path(path)

    def fetch(self, bucket: str, key: str) -> bytes:
        try:
            data = self.path.read_bytes()
        except OSError as ex:
            raise FetchFailure(f"No se pudo leer {self.path}: {ex}") from ex
        logger.info(f"Archivo local {self.path} servido como {bucket}/{key} ({len(data)} bytes)")
        return data
