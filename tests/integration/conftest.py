import os
import uuid
from collections.abc import Callable, Generator
from typing import Any

import psycopg
import pytest

from chartqa.config.settings import Settings
from chartqa.database.connection import close_pool, get_connection, init_pool
from chartqa.database.models import ClinicalDocumentRecord
from chartqa.database.repositories.document_repository import DocumentRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "chartqa_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session", autouse=True)
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 FROM clinical_documents LIMIT 1")
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to a database with the clinical_documents and qa_analysis tables"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def chart_id() -> str:
    return f"IT-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def integration_cleanup(chart_id: str) -> Generator[None, None, None]:
    yield
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                DELETE FROM qa_analysis
                WHERE document_id IN (SELECT id FROM clinical_documents WHERE chart_id = %s)
                """,
                (chart_id,),
            )
            cur.execute("DELETE FROM clinical_documents WHERE chart_id = %s", (chart_id,))
        conn.commit()


@pytest.fixture
def seed_document(
    db_conn: psycopg.Connection[Any],
    chart_id: str,
    integration_cleanup: None,
) -> Callable[..., ClinicalDocumentRecord]:
    """Insert clinical_documents rows for the test chart."""

    def _seed(
        document_type: str = "clinical_note",
        status: str = "pending",
        extracted_text: str | None = None,
        file_name: str = "visit.pdf",
    ) -> ClinicalDocumentRecord:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO clinical_documents
                (chart_id, patient_id, patient_name, document_type, file_name,
                 source_ref, extracted_text, status, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
                RETURNING id
                """,
                (
                    chart_id,
                    f"P-{chart_id}",
                    "Jane Doe",
                    document_type,
                    file_name,
                    f"uploads/{file_name}",
                    extracted_text,
                    status,
                ),
            )
            row = cur.fetchone()
            assert row is not None
        db_conn.commit()
        documents = DocumentRepository().get_documents_by_chart(chart_id)
        return next(d for d in documents if d.id == row[0])

    return _seed
