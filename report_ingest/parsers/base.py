import re
from typing import Any, Dict
from urllib.parse import unquote_plus

from report_ingest.commons.errors import FetchFailure, KeyFormatError
from report_ingest.parsers.models import ReportLocation

# "deepak_3.pdf" -> 3 ; el prefijo puede traer timestamp o carpetas
PATIENT_KEY_RE = re.compile(r"_([0-9]+)\.pdf\Z")


def decode_object_key(raw_key: str) -> str:
    """Las keys de S3 llegan url-encoded y con '+' en lugar de espacios."""
    return unquote_plus(raw_key)


def patient_id_from_key(key: str) -> int:
    m = PATIENT_KEY_RE.search(key)
    if not m:
        raise KeyFormatError(f"Unable to extract patient_id from S3 key: {key!r}")
    return int(m.group(1))


def location_from_record(record: Dict[str, Any]) -> ReportLocation:
    try:
        s3 = record["s3"]
        bucket = s3["bucket"]["name"]
        raw_key = s3["object"]["key"]
    except (KeyError, TypeError) as ex:
        raise FetchFailure(f"Record sin bucket/key de S3: {ex}") from ex
    return ReportLocation(bucket=bucket, key=decode_object_key(raw_key))
