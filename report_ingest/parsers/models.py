# ===============================
# File: report_ingest/parsers/models.py
# ===============================
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ReportLocation:
    bucket: str
    key: str  # ya decodificada (unquote_plus)


@dataclass
class ClassifiedTest:
    patient_id: int
    test_type: str
    value: float
    minlimit: float
    maxlimit: float
    unit: Optional[str]
    test_timestamp: str
    in_range: bool
    created_at: str

    @property
    def status(self) -> int:
        # 1 = Normal, 0 = Abnormal
        return 1 if self.in_range else 0


@dataclass
class ClassifiedReport:
    patient_id: int
    in_range: List[ClassifiedTest] = field(default_factory=list)
    out_of_range: List[ClassifiedTest] = field(default_factory=list)
    skipped: int = 0

    @property
    def persisted(self) -> int:
        return len(self.in_range) + len(self.out_of_range)
