from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from chartqa.analysis.models import AnalysisResult
from chartqa.database.models import ClinicalDocumentRecord, QAAnalysisRecord
from chartqa.database.repositories.document_repository import DocumentRepository
from chartqa.processor.exceptions import DocumentNotFoundError

PATCH_TARGET = "chartqa.database.repositories.document_repository.get_connection"


def _make_row(**overrides: object) -> dict:
    row = {
        "id": 1,
        "chart_id": "C-1",
        "patient_id": "P-1",
        "patient_name": "Jane Doe",
        "document_type": "oasis",
        "file_name": "soc.pdf",
        "source_ref": "uploads/soc.pdf",
        "extracted_text": None,
        "status": "pending",
        "quality_score": None,
        "compliance_score": None,
        "processed_at": None,
        "created_at": datetime(2024, 3, 1),
        "updated_at": datetime(2024, 3, 1),
    }
    row.update(overrides)
    return row


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


def _analysis() -> AnalysisResult:
    return AnalysisResult(
        document_kind="oasis_assessment",
        quality_score=84,
        completeness_score=80,
        confidence_score=90,
        compliance_score=77,
    )


class TestGetDocuments:
    @patch(PATCH_TARGET)
    def test_returns_records_for_chart(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row(), _make_row(id=2, status="completed")]

        result = DocumentRepository().get_documents_by_chart("C-1")

        assert [d.id for d in result] == [1, 2]
        assert isinstance(result[0], ClinicalDocumentRecord)
        assert result[0].patient_name == "Jane Doe"
        assert result[1].is_completed
        query, params = mock_cursor.execute.call_args[0]
        assert "WHERE chart_id = %s" in query
        assert "ORDER BY created_at, id" in query
        assert params == ["C-1"]

    @patch(PATCH_TARGET)
    def test_filters_by_patient_and_status(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = []

        result = DocumentRepository().get_documents_by_patient("P-1", status="completed")

        assert result == []
        query, params = mock_cursor.execute.call_args[0]
        assert "WHERE patient_id = %s AND status = %s" in query
        assert params == ["P-1", "completed"]


class TestGetAnalyses:
    @patch(PATCH_TARGET)
    def test_empty_id_list_skips_database(self, mock_get_conn: MagicMock) -> None:
        assert DocumentRepository().get_analyses([]) == {}
        mock_get_conn.assert_not_called()

    @patch(PATCH_TARGET)
    def test_returns_records_keyed_by_document(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [
            {
                "document_id": 2,
                "chart_id": "C-1",
                "document_type": "clinical_note",
                "quality_score": 90,
                "compliance_score": None,
                "findings": {"qualityScore": 90},
                "updated_at": None,
            }
        ]

        result = DocumentRepository().get_analyses([1, 2])

        assert set(result) == {2}
        assert isinstance(result[2], QAAnalysisRecord)
        assert result[2].findings == {"qualityScore": 90}
        assert mock_cursor.execute.call_args[0][1] == ([1, 2],)


class TestMarkStatus:
    @patch(PATCH_TARGET)
    def test_updates_and_commits(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        DocumentRepository().mark_status(1, "processing")

        assert mock_cursor.execute.call_args[0][1] == ("processing", 1)
        mock_conn.commit.assert_called_once()

    @patch(PATCH_TARGET)
    def test_raises_document_not_found_when_missing(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        with pytest.raises(DocumentNotFoundError, match="Document 999 not found"):
            DocumentRepository().mark_status(999, "processing")
        mock_conn.commit.assert_not_called()


class TestSaveDocumentResult:
    @patch(PATCH_TARGET)
    def test_writes_document_and_analysis(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1
        document = ClinicalDocumentRecord(**_make_row())

        DocumentRepository().save_document_result(document, "extracted text", _analysis())

        mock_conn.transaction.assert_called_once()
        assert mock_cursor.execute.call_count == 2
        update_params = mock_cursor.execute.call_args_list[0][0][1]
        assert update_params == ("extracted text", 84, 77, 1)
        insert_query, insert_params = mock_cursor.execute.call_args_list[1][0]
        assert "ON CONFLICT (document_id) DO UPDATE" in insert_query
        assert insert_params[:5] == (1, "C-1", "oasis_assessment", 84, 77)
        assert insert_params[5].obj["qualityScore"] == 84

    @patch(PATCH_TARGET)
    def test_missing_document_writes_no_analysis(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0
        document = ClinicalDocumentRecord(**_make_row(id=404))

        with pytest.raises(DocumentNotFoundError, match="Document 404 not found"):
            DocumentRepository().save_document_result(document, "text", _analysis())
        assert mock_cursor.execute.call_count == 1
