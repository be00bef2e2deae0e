from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DocumentMeta:
    """Structured metadata embedded in the scoring request."""

    document_id: int | str
    kind: str
    file_name: str | None = None
    chart_id: str | None = None
    patient_id: str | None = None
    patient_name: str | None = None

    def as_prompt_lines(self) -> str:
        fields = {
            "Document type": self.kind,
            "File name": self.file_name,
            "Chart ID": self.chart_id,
            "Patient ID": self.patient_id,
            "Patient name": self.patient_name,
        }
        return "\n".join(f"{label}: {value}" for label, value in fields.items() if value)


@dataclass(frozen=True)
class FinancialImpact:
    current_revenue: float | None = None
    optimized_revenue: float | None = None
    potential_increase: float | None = None
    opportunities: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ComplianceChecks:
    hipaa_compliant: bool = True
    domain_compliant: bool = True
    issues: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnalysisResult:
    """Bounded scoring output for one document.

    Every score is an int in [0, 100]; list fields are never None.
    """

    document_kind: str
    quality_score: int
    completeness_score: int
    confidence_score: int
    compliance_score: int | None = None
    accuracy_score: int | None = None
    flagged_issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    financial_impact: FinancialImpact = field(default_factory=FinancialImpact)
    compliance_checks: ComplianceChecks = field(default_factory=ComplianceChecks)
    critical_issue_count: int = 0
    is_fallback: bool = False

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready, camelCase representation (persisted as qa_analysis.findings)."""
        return {
            "documentKind": self.document_kind,
            "qualityScore": self.quality_score,
            "completenessScore": self.completeness_score,
            "confidenceScore": self.confidence_score,
            "complianceScore": self.compliance_score,
            "accuracyScore": self.accuracy_score,
            "flaggedIssues": list(self.flagged_issues),
            "recommendations": list(self.recommendations),
            "financialImpact": {
                "currentRevenue": self.financial_impact.current_revenue,
                "optimizedRevenue": self.financial_impact.optimized_revenue,
                "potentialIncrease": self.financial_impact.potential_increase,
                "opportunities": list(self.financial_impact.opportunities),
            },
            "complianceChecks": {
                "hipaaCompliant": self.compliance_checks.hipaa_compliant,
                "domainCompliant": self.compliance_checks.domain_compliant,
                "issues": list(self.compliance_checks.issues),
            },
            "criticalIssueCount": self.critical_issue_count,
            "isFallback": self.is_fallback,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AnalysisResult":
        """Rebuild a result persisted with ``to_payload``."""
        financial = payload.get("financialImpact") or {}
        checks = payload.get("complianceChecks") or {}
        return cls(
            document_kind=payload.get("documentKind") or "other",
            quality_score=int(payload.get("qualityScore", 0)),
            completeness_score=int(payload.get("completenessScore", 0)),
            confidence_score=int(payload.get("confidenceScore", 0)),
            compliance_score=_optional_int(payload.get("complianceScore")),
            accuracy_score=_optional_int(payload.get("accuracyScore")),
            flagged_issues=list(payload.get("flaggedIssues") or []),
            recommendations=list(payload.get("recommendations") or []),
            financial_impact=FinancialImpact(
                current_revenue=financial.get("currentRevenue"),
                optimized_revenue=financial.get("optimizedRevenue"),
                potential_increase=financial.get("potentialIncrease"),
                opportunities=list(financial.get("opportunities") or []),
            ),
            compliance_checks=ComplianceChecks(
                hipaa_compliant=bool(checks.get("hipaaCompliant", True)),
                domain_compliant=bool(checks.get("domainCompliant", True)),
                issues=list(checks.get("issues") or []),
            ),
            critical_issue_count=int(payload.get("criticalIssueCount", 0)),
            is_fallback=bool(payload.get("isFallback", False)),
        )


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)
