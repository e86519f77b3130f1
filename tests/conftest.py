import json

import pytest
from sqlalchemy import text

from report_ingest.commons.types import DatabaseCfg
from report_ingest.helpers import pdf_text
from report_ingest.helpers.repository import ReportRepository, make_engine
from report_ingest.services import report_service
from report_ingest.services.report_service import ReportService

PDF_BYTES = b"Mock PDF content"

PDF_TEXT = """
PATIENT MEDICAL REPORT
Name: John Doe
Date: 10/Apr/2025 05:30PM

Test Results:
HAEMOGLOBIN (Hb): 14.9 gm/dL (Normal: 12.0-15.0)
WHITE BLOOD CELLS: 8500 /mm³ (Normal: 4000-11000)
PLATELET COUNT: 350000 /mm³ (Normal: 150000-400000)
CHOLESTEROL: 240 mg/dL (Normal: <200)
"""

FOUR_TESTS = [
    {
        "test_type": "HAEMOGLOBIN (Hb)",
        "value": 14.9,
        "minlimit": 12.0,
        "maxlimit": 15.0,
        "unit": "gm/dL",
        "timestamp": "10/Apr/2025 05:30PM",
    },
    {
        "test_type": "WHITE BLOOD CELLS",
        "value": 8500,
        "minlimit": 4000,
        "maxlimit": 11000,
        "unit": "/mm³",
        "timestamp": "10/Apr/2025 05:30PM",
    },
    {
        "test_type": "PLATELET COUNT",
        "value": 350000,
        "minlimit": 150000,
        "maxlimit": 400000,
        "unit": "/mm³",
        "timestamp": "10/Apr/2025 05:30PM",
    },
    {
        "test_type": "CHOLESTEROL",
        "value": 240,
        "minlimit": 0,
        "maxlimit": 200,
        "unit": "mg/dL",
        "timestamp": "10/Apr/2025 05:30PM",
    },
]

SCHEMA = [
    "CREATE TABLE users (user_id INTEGER PRIMARY KEY, email TEXT NOT NULL)",
    """
    CREATE TABLE report_test (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        patient_id INTEGER NOT NULL,
        test_type TEXT NOT NULL,
        value REAL NOT NULL,
        minlimit REAL NOT NULL,
        maxlimit REAL NOT NULL,
        unit TEXT,
        test_timestamp TEXT NOT NULL,
        status INTEGER NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
]


def make_s3_record(bucket: str = "test-bucket", key: str = "deepak_3.pdf") -> dict:
    return {
        "eventVersion": "2.1",
        "eventSource": "aws:s3",
        "awsRegion": "us-east-1",
        "eventName": "ObjectCreated:Put",
        "s3": {
            "s3SchemaVersion": "1.0",
            "configurationId": "testConfig",
            "bucket": {"name": bucket, "arn": f"arn:aws:s3:::{bucket}"},
            "object": {"key": key, "size": 1024, "eTag": "mock-etag"},
        },
    }


def make_s3_event(bucket: str = "test-bucket", key: str = "deepak_3.pdf") -> dict:
    return {"Records": [make_s3_record(bucket, key)]}


class FakeStore:
    def __init__(self, data: bytes = PDF_BYTES, error: Exception = None):
        self.data = data
        self.error = error
        self.calls = []

    def fetch(self, bucket: str, key: str) -> bytes:
        self.calls.append((bucket, key))
        if self.error:
            raise self.error
        return self.data


class FakeModel:
    def __init__(self, content: str = json.dumps(FOUR_TESTS), error: Exception = None):
        self.content = content
        self.error = error
        self.prompts = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.content


class FakeMailer:
    def __init__(self, error: Exception = None):
        self.error = error
        self.sent = []

    def send(self, to_address, critical, normal):
        self.sent.append((to_address, list(critical), list(normal)))
        if self.error:
            raise self.error
        return f"<{len(self.sent)}@diagnexus.test>"


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(DatabaseCfg(url=f"sqlite:///{tmp_path / 'reports.db'}"))
    with eng.begin() as conn:
        for ddl in SCHEMA:
            conn.execute(text(ddl))
        conn.execute(
            text("INSERT INTO users (user_id, email) VALUES (:id, :email)"),
            [
                {"id": 1, "email": "one@example.com"},
                {"id": 2, "email": "two@example.com"},
                {"id": 3, "email": "test@example.com"},
                {"id": 123, "email": "p123@example.com"},
            ],
        )
    yield eng
    eng.dispose()


@pytest.fixture
def repository(engine):
    return ReportRepository(engine)


@pytest.fixture
def stored_rows(engine):
    def _rows():
        with engine.connect() as conn:
            return [dict(r._mapping) for r in conn.execute(text("SELECT * FROM report_test ORDER BY id"))]

    return _rows


@pytest.fixture(autouse=True)
def fake_pdf_text(monkeypatch):
    """El texto del PDF es fijo; un body vacío sigue pasando por la validación real."""
    real = pdf_text.extract_text

    def _extract(data):
        return real(data) if not data else PDF_TEXT

    monkeypatch.setattr(report_service, "extract_text", _extract)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def model():
    return FakeModel()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def service(store, model, repository, mailer):
    return ReportService(store=store, model=model, repository=repository, mailer=mailer)
