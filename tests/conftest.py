import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from chartqa.config.thresholds import PipelineThresholds
from chartqa.inference.retry import RetryingInvoker, RetryPolicy


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def clinical_pdf_bytes() -> bytes:
    """A visit note PDF with enough text to pass the content threshold."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    lines = [
        "Skilled Nursing Visit Note",
        "Patient Name: Jane Doe   MRN: 000123   DOB: 01/02/1940",
        "Diagnosis: I10 Essential hypertension",
        "Medications reviewed: lisinopril 10 mg daily",
        "Vital signs stable. Patient tolerated visit well.",
        "Electronically signed by RN on 03/04/2024",
    ]
    for i, line in enumerate(lines):
        c.drawString(72, 720 - i * 18, line)
    c.save()
    return buf.getvalue()


@pytest.fixture()
def thresholds() -> PipelineThresholds:
    return PipelineThresholds()


@pytest.fixture()
def no_retry_invoker() -> RetryingInvoker:
    """Single attempt, no backoff."""
    return RetryingInvoker(RetryPolicy(max_attempts=1, backoff_base_seconds=0))
