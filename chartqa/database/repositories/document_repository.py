from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from chartqa.analysis.models import AnalysisResult
from chartqa.database.connection import get_connection
from chartqa.database.models import ClinicalDocumentRecord, QAAnalysisRecord
from chartqa.processor.exceptions import DocumentNotFoundError

_DOCUMENT_COLUMNS = """
    id, chart_id, patient_id, patient_name, document_type, file_name,
    source_ref, extracted_text, status, quality_score, compliance_score,
    processed_at, created_at, updated_at
"""


class DocumentRepository:
    """Database operations for clinical_documents and qa_analysis."""

    def get_documents_by_chart(
        self, chart_id: str, status: str | None = None
    ) -> list[ClinicalDocumentRecord]:
        return self._select_documents("chart_id", chart_id, status)

    def get_documents_by_patient(
        self, patient_id: str, status: str | None = None
    ) -> list[ClinicalDocumentRecord]:
        return self._select_documents("patient_id", patient_id, status)

    def _select_documents(
        self, column: str, value: str, status: str | None
    ) -> list[ClinicalDocumentRecord]:
        query = f"SELECT {_DOCUMENT_COLUMNS} FROM clinical_documents WHERE {column} = %s"
        params: list[Any] = [value]
        if status is not None:
            query += " AND status = %s"
            params.append(status)
        query += " ORDER BY created_at, id"

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()

        return [ClinicalDocumentRecord(**row) for row in rows]

    def get_analyses(self, document_ids: list[int]) -> dict[int, QAAnalysisRecord]:
        """Fetch stored analyses keyed by document id."""
        if not document_ids:
            return {}
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT document_id, chart_id, document_type, quality_score,
                           compliance_score, findings, updated_at
                    FROM qa_analysis
                    WHERE document_id = ANY(%s)
                    """,
                    (list(document_ids),),
                )
                rows = cur.fetchall()

        return {
            row["document_id"]: QAAnalysisRecord(
                document_id=row["document_id"],
                chart_id=row["chart_id"],
                document_type=row["document_type"],
                quality_score=row["quality_score"],
                compliance_score=row["compliance_score"],
                findings=row["findings"] or {},
                updated_at=row["updated_at"],
            )
            for row in rows
        }

    def mark_status(self, document_id: int, status: str) -> None:
        """Set clinical_documents.status without touching text or scores.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE clinical_documents
                    SET status = %s, updated_at = NOW()
                    WHERE id = %s
                    """,
                    (status, document_id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def save_document_result(
        self,
        document: ClinicalDocumentRecord,
        extracted_text: str,
        analysis: AnalysisResult,
    ) -> None:
        """Persist extracted text, scores and the analysis payload in one transaction.

        Raises:
            DocumentNotFoundError: if no document with this ID exists; nothing is written.
        """
        with get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE clinical_documents
                        SET extracted_text = %s,
                            quality_score = %s,
                            compliance_score = %s,
                            status = 'completed',
                            processed_at = NOW(),
                            updated_at = NOW()
                        WHERE id = %s
                        """,
                        (
                            extracted_text,
                            analysis.quality_score,
                            analysis.compliance_score,
                            document.id,
                        ),
                    )
                    if cur.rowcount == 0:
                        raise DocumentNotFoundError(f"Document {document.id} not found")
                    cur.execute(
                        """
                        INSERT INTO qa_analysis (
                            document_id, chart_id, document_type,
                            quality_score, compliance_score, findings, updated_at
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, NOW())
                        ON CONFLICT (document_id) DO UPDATE
                        SET chart_id = EXCLUDED.chart_id,
                            document_type = EXCLUDED.document_type,
                            quality_score = EXCLUDED.quality_score,
                            compliance_score = EXCLUDED.compliance_score,
                            findings = EXCLUDED.findings,
                            updated_at = NOW()
                        """,
                        (
                            document.id,
                            document.chart_id,
                            analysis.document_kind,
                            analysis.quality_score,
                            analysis.compliance_score,
                            Jsonb(analysis.to_payload()),
                        ),
                    )
