from dataclasses import dataclass, field
from typing import Any

from chartqa.aggregation.risk import RiskLevel
from chartqa.analysis.models import AnalysisResult


@dataclass(frozen=True)
class DocumentOutcome:
    """What happened to one document during a chart run."""

    document_id: int
    document_kind: str
    file_name: str | None = None
    analysis: AnalysisResult | None = None
    extracted: bool = False
    diagnostic: str = ""
    error: str | None = None
    reused: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "documentId": self.document_id,
            "documentKind": self.document_kind,
            "fileName": self.file_name,
            "extracted": self.extracted,
            "reused": self.reused,
            "failed": self.failed,
            "analysis": self.analysis.to_payload() if self.analysis else None,
        }
        if self.diagnostic:
            payload["diagnostic"] = self.diagnostic
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class DocumentTypeSummary:
    score: int | None
    status: str
    issues: int
    documents: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "status": self.status,
            "issues": self.issues,
            "documents": self.documents,
        }


@dataclass(frozen=True)
class ChartFinancialImpact:
    current_revenue: float
    optimized_revenue: float
    potential_increase: float
    opportunities: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChartReport:
    """Chart-level QA verdict, recomputed on every request."""

    chart_id: str | None
    patient_id: str | None
    overall_qa_score: int
    compliance_score: int
    risk_level: RiskLevel
    total_issues: int
    critical_issues: int
    review_required: bool
    flagged_issues: list[str]
    recommendations: list[str]
    compliance_issues: list[str]
    financial_impact: ChartFinancialImpact
    document_type_breakdown: dict[str, DocumentTypeSummary]
    documents: list[DocumentOutcome]

    def to_payload(self) -> dict[str, Any]:
        return {
            "chartId": self.chart_id,
            "patientId": self.patient_id,
            "overallQAScore": self.overall_qa_score,
            "complianceScore": self.compliance_score,
            "riskLevel": self.risk_level.value,
            "totalIssues": self.total_issues,
            "criticalIssues": self.critical_issues,
            "reviewRequired": self.review_required,
            "flaggedIssues": list(self.flagged_issues),
            "recommendations": list(self.recommendations),
            "complianceIssues": list(self.compliance_issues),
            "financialImpact": {
                "currentRevenue": self.financial_impact.current_revenue,
                "optimizedRevenue": self.financial_impact.optimized_revenue,
                "potentialIncrease": self.financial_impact.potential_increase,
                "opportunities": list(self.financial_impact.opportunities),
            },
            "documentTypeBreakdown": {
                kind: summary.to_payload()
                for kind, summary in self.document_type_breakdown.items()
            },
            "perDocumentResults": [outcome.to_payload() for outcome in self.documents],
        }
