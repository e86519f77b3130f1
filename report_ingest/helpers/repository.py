from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from report_ingest.commons.errors import PersistenceFailure
from report_ingest.commons.types import DatabaseCfg
from report_ingest.parsers.models import ClassifiedTest

INSERT_TEST = text(
    """
    INSERT INTO report_test
        (patient_id, test_type, value, minlimit, maxlimit, unit, test_timestamp, status, created_at)
    VALUES
        (:patient_id, :test_type, :value, :minlimit, :maxlimit, :unit, :test_timestamp, :status, :created_at)
    """
)

SELECT_EMAIL = text("SELECT email FROM users WHERE user_id = :user_id")


def make_engine(cfg: DatabaseCfg) -> Engine:
    url = cfg.sqlalchemy_url()
    kwargs = {"pool_pre_ping": True}
    if str(url).startswith("postgresql"):
        kwargs.update(pool_size=cfg.pool_size, max_overflow=cfg.max_overflow)
    return create_engine(url, **kwargs)


class ReportRepository:
    """Cada operación toma una conexión del pool y es su propia unidad de trabajo."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def insert_test(self, test: ClassifiedTest) -> None:
        params = {
            "patient_id": test.patient_id,
            "test_type": test.test_type,
            "value": test.value,
            "minlimit": test.minlimit,
            "maxlimit": test.maxlimit,
            "unit": test.unit,
            "test_timestamp": test.test_timestamp,
            "status": test.status,
            "created_at": test.created_at,
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(INSERT_TEST, params)
        except SQLAlchemyError as ex:
            raise PersistenceFailure(f"INSERT report_test falló ({test.test_type}): {ex}") from ex

    def find_patient_email(self, patient_id: int) -> Optional[str]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(SELECT_EMAIL, {"user_id": patient_id}).first()
        except SQLAlchemyError as ex:
            raise PersistenceFailure(f"Consulta de usuario {patient_id} falló: {ex}") from ex
        return row[0] if row else None
