"""Deterministic fallback scoring used when AI analysis is exhausted."""

import re

from chartqa.analysis.models import AnalysisResult, ComplianceChecks, DocumentMeta
from chartqa.config.thresholds import PipelineThresholds

FALLBACK_ISSUE = "AI analysis failed; heuristic fallback score applied, manual QA review required"

_IDENTIFIER_RE = re.compile(
    r"\b(patient\s+name|patient\s+id|mrn|medical\s+record|dob|date\s+of\s+birth)\b", re.IGNORECASE
)
_MEDICATION_RE = re.compile(r"\b(medications?|meds|\d+\s?mg)\b", re.IGNORECASE)
_SIGNATURE_RE = re.compile(r"\b(signed|signature|attested|e-signed)\b", re.IGNORECASE)
# OASIS item ids (M1800) or ICD-10 style codes (I10, E11.9)
_CODE_RE = re.compile(r"\bM\d{4}\b|\b[A-TV-Z]\d{2}(?:\.[0-9A-Z]{1,4})?\b")


class HeuristicScorer:
    """Scores text on the presence of basic charting signals."""

    def __init__(self, thresholds: PipelineThresholds) -> None:
        self._t = thresholds

    def score(self, text: str, meta: DocumentMeta, *, reason: str = "") -> AnalysisResult:
        t = self._t
        score = t.heuristic_base_score
        if meta.patient_name or meta.patient_id or _IDENTIFIER_RE.search(text):
            score += t.heuristic_identifier_bonus
        if len(text) > t.heuristic_length_chars:
            score += t.heuristic_length_bonus
        if _MEDICATION_RE.search(text):
            score += t.heuristic_medication_bonus
        if _SIGNATURE_RE.search(text):
            score += t.heuristic_signature_bonus
        if _CODE_RE.search(text):
            score += t.heuristic_code_bonus
        score = min(100, score)

        issue = FALLBACK_ISSUE if not reason else f"{FALLBACK_ISSUE} ({reason})"
        return AnalysisResult(
            document_kind=meta.kind,
            quality_score=score,
            completeness_score=score,
            confidence_score=t.heuristic_confidence_score,
            flagged_issues=[issue],
            recommendations=[
                "Perform a manual QA review of this document",
                "Re-run AI analysis once the inference service is available",
            ],
            compliance_checks=ComplianceChecks(
                issues=["Automated compliance review unavailable; verify compliance manually"],
            ),
            is_fallback=True,
        )
