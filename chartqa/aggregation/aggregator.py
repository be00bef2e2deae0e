"""Merges per-document outcomes into one risk-classified chart report."""

import math
from collections.abc import Iterable, Sequence

from chartqa.aggregation.models import (
    ChartFinancialImpact,
    ChartReport,
    DocumentOutcome,
    DocumentTypeSummary,
)
from chartqa.aggregation.risk import classify_risk, requires_review
from chartqa.analysis.document_kinds import DocumentKind
from chartqa.analysis.models import AnalysisResult
from chartqa.config.thresholds import PipelineThresholds

# kinds every chart is expected to carry; absent ones are reported as "missing"
EXPECTED_KINDS: tuple[DocumentKind, ...] = (
    DocumentKind.OASIS_ASSESSMENT,
    DocumentKind.PLAN_OF_CARE,
    DocumentKind.PHYSICIAN_ORDER,
    DocumentKind.CLINICAL_NOTE,
    DocumentKind.EVALUATION,
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mean_score(scores: Sequence[int]) -> int | None:
    """Rounded unweighted mean; None when there is nothing to average."""
    if not scores:
        return None
    return round_half_up(sum(scores) / len(scores))


def dedupe(items: Iterable[str], cap: int | None = None) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        key = item.strip()
        if not key or key.lower() in seen:
            continue
        seen.add(key.lower())
        result.append(key)
        if cap is not None and len(result) == cap:
            break
    return result


class ChartAggregator:
    """Builds a ChartReport from the outcomes of one chart run."""

    def __init__(self, thresholds: PipelineThresholds) -> None:
        self._t = thresholds

    def aggregate(
        self,
        outcomes: Sequence[DocumentOutcome],
        *,
        chart_id: str | None = None,
        patient_id: str | None = None,
    ) -> ChartReport:
        analyses = [o.analysis for o in outcomes if o.analysis is not None]

        overall = mean_score([a.quality_score for a in analyses])
        if overall is None:
            # nothing could be scored; treated as the worst case
            overall = 0
        compliance = mean_score(
            [a.compliance_score for a in analyses if a.compliance_score is not None]
        )
        if compliance is None:
            compliance = overall

        flagged: list[str] = []
        for outcome in outcomes:
            if outcome.analysis is not None:
                flagged.extend(outcome.analysis.flagged_issues)
            else:
                flagged.append(self._manual_review_issue(outcome))

        total_issues = len(flagged)
        critical_issues = sum(a.critical_issue_count for a in analyses)

        return ChartReport(
            chart_id=chart_id,
            patient_id=patient_id,
            overall_qa_score=overall,
            compliance_score=compliance,
            risk_level=classify_risk(overall, total_issues, critical_issues),
            total_issues=total_issues,
            critical_issues=critical_issues,
            review_required=requires_review(total_issues, critical_issues),
            flagged_issues=dedupe(flagged),
            recommendations=dedupe(
                (r for a in analyses for r in a.recommendations),
                self._t.report_recommendation_cap,
            ),
            compliance_issues=dedupe(
                (i for a in analyses for i in a.compliance_checks.issues),
                self._t.report_compliance_issue_cap,
            ),
            financial_impact=self._financial_impact(analyses),
            document_type_breakdown=self._breakdown(outcomes),
            documents=list(outcomes),
        )

    @staticmethod
    def _manual_review_issue(outcome: DocumentOutcome) -> str:
        name = outcome.file_name or f"document {outcome.document_id}"
        reason = outcome.error or outcome.diagnostic or "not analyzed"
        return f"{name}: processing failed, manual review needed ({reason})"

    def _financial_impact(self, analyses: Sequence[AnalysisResult]) -> ChartFinancialImpact:
        def total(values: Iterable[float | None]) -> float:
            return round(sum(v for v in values if v is not None), 2)

        impacts = [a.financial_impact for a in analyses]
        return ChartFinancialImpact(
            current_revenue=total(i.current_revenue for i in impacts),
            optimized_revenue=total(i.optimized_revenue for i in impacts),
            potential_increase=total(i.potential_increase for i in impacts),
            opportunities=dedupe(
                (o for i in impacts for o in i.opportunities),
                self._t.report_opportunity_cap,
            ),
        )

    @staticmethod
    def _breakdown(outcomes: Sequence[DocumentOutcome]) -> dict[str, DocumentTypeSummary]:
        grouped: dict[str, list[DocumentOutcome]] = {kind.value: [] for kind in EXPECTED_KINDS}
        for outcome in outcomes:
            grouped.setdefault(outcome.document_kind, []).append(outcome)

        breakdown: dict[str, DocumentTypeSummary] = {}
        for kind, members in grouped.items():
            if not members:
                breakdown[kind] = DocumentTypeSummary(
                    score=None, status="missing", issues=0, documents=0
                )
                continue
            scored = [m.analysis for m in members if m.analysis is not None]
            issues = sum(len(a.flagged_issues) for a in scored)
            issues += sum(1 for m in members if m.analysis is None)
            breakdown[kind] = DocumentTypeSummary(
                score=mean_score([a.quality_score for a in scored]),
                status="complete" if len(scored) == len(members) else "incomplete",
                issues=issues,
                documents=len(members),
            )
        return breakdown
