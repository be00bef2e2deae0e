from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class ClinicalDocumentRecord:
    """Represents a row from the clinical_documents table."""

    id: int
    document_type: str
    status: str
    chart_id: str | None = None
    patient_id: str | None = None
    patient_name: str | None = None
    file_name: str | None = None
    source_ref: str | None = None
    extracted_text: str | None = None
    quality_score: int | None = None
    compliance_score: int | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass
class QAAnalysisRecord:
    """Represents a row from the qa_analysis table."""

    document_id: int
    document_type: str
    chart_id: str | None = None
    quality_score: int | None = None
    compliance_score: int | None = None
    findings: dict[str, Any] = field(default_factory=dict)
    updated_at: datetime | None = None
