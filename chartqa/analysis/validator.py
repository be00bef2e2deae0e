"""Turns a decoded model response into a bounded AnalysisResult."""

import math
from typing import Any

from chartqa.analysis.exceptions import AnalysisValidationError
from chartqa.analysis.models import AnalysisResult, ComplianceChecks, FinancialImpact
from chartqa.config.thresholds import PipelineThresholds

_CRITICAL_SEVERITIES = frozenset({"critical", "high"})
_ISSUE_TEXT_KEYS = ("issue", "description", "message", "text", "finding")
_RECOMMENDATION_TEXT_KEYS = ("recommendation", "description", "action", "text")
_OPPORTUNITY_TEXT_KEYS = ("description", "opportunity", "category", "text")


def clamp_score(raw: Any, default: int | None) -> int | None:
    """Round a numeric-looking value and clamp it to [0, 100].

    Non-numeric or missing values yield ``default``.
    """
    value = _to_number(raw)
    if value is None:
        return default
    return max(0, min(100, int(math.floor(value + 0.5))))


def validate_and_build(
    data: dict[str, Any],
    *,
    document_kind: str,
    thresholds: PipelineThresholds,
    optional_scores: frozenset[str] = frozenset(),
) -> AnalysisResult:
    """Build an AnalysisResult from parsed JSON.

    Scores are clamped and defaulted rather than rejected. ``optional_scores``
    names the optional scores ("compliance", "accuracy") this document kind
    is expected to report; those default like the required scores, others
    stay None when absent.

    Raises:
        AnalysisValidationError: if ``data`` is not a JSON object.
    """
    if not isinstance(data, dict):
        raise AnalysisValidationError("Analysis response must be an object")
    scores = _collect_scores(data)

    default = thresholds.default_score
    issues, critical = _build_issues(data.get("flaggedIssues"), thresholds.max_list_items)
    checks = _build_compliance_checks(data.get("complianceChecks"), thresholds.max_list_items)
    if not checks.hipaa_compliant:
        critical += 1

    return AnalysisResult(
        document_kind=document_kind,
        quality_score=clamp_score(scores.get("quality"), default),
        completeness_score=clamp_score(scores.get("completeness"), default),
        confidence_score=clamp_score(scores.get("confidence"), default),
        compliance_score=clamp_score(
            scores.get("compliance"), default if "compliance" in optional_scores else None
        ),
        accuracy_score=clamp_score(
            scores.get("accuracy"), default if "accuracy" in optional_scores else None
        ),
        flagged_issues=issues,
        recommendations=_text_list(
            data.get("recommendations"), _RECOMMENDATION_TEXT_KEYS, thresholds.max_list_items
        ),
        financial_impact=_build_financial_impact(
            data.get("financialImpact"), thresholds.max_opportunities
        ),
        compliance_checks=checks,
        critical_issue_count=critical,
    )


def _collect_scores(data: dict[str, Any]) -> dict[str, Any]:
    # flat camelCase keys win over the nested {"qualityScores": {...}} shape
    nested = data.get("qualityScores")
    scores: dict[str, Any] = {}
    if isinstance(nested, dict):
        scores["quality"] = nested.get("overall")
        for name in ("completeness", "accuracy", "compliance", "confidence"):
            scores[name] = nested.get(name)
    for name in ("quality", "completeness", "confidence", "compliance", "accuracy"):
        key = f"{name}Score"
        if key in data:
            scores[name] = data[key]
    return {name: value for name, value in scores.items() if value is not None}


def _to_number(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip().rstrip("%"))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _item_text(item: Any, keys: tuple[str, ...]) -> str | None:
    if isinstance(item, str):
        text = item.strip()
        return text or None
    if isinstance(item, dict):
        for key in keys:
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _text_list(raw: Any, keys: tuple[str, ...], cap: int) -> list[str]:
    if not isinstance(raw, list):
        return []
    items = [text for text in (_item_text(item, keys) for item in raw) if text]
    return items[:cap]


def _build_issues(raw: Any, cap: int) -> tuple[list[str], int]:
    if not isinstance(raw, list):
        return [], 0
    issues: list[str] = []
    critical = 0
    for item in raw:
        text = _item_text(item, _ISSUE_TEXT_KEYS)
        if not text:
            continue
        severity = ""
        if isinstance(item, dict) and isinstance(item.get("severity"), str):
            severity = item["severity"].strip().lower()
        if severity in _CRITICAL_SEVERITIES:
            critical += 1
            text = f"[{severity.upper()}] {text}"
        # The count covers every issue; only the text list is capped.
        if len(issues) < cap:
            issues.append(text)
    return issues, critical


def _to_amount(raw: Any) -> float | None:
    value = _to_number(raw.replace("$", "").replace(",", "") if isinstance(raw, str) else raw)
    return round(value, 2) if value is not None else None


def _build_financial_impact(raw: Any, cap: int) -> FinancialImpact:
    if not isinstance(raw, dict):
        return FinancialImpact()
    return FinancialImpact(
        current_revenue=_to_amount(raw.get("currentRevenue")),
        optimized_revenue=_to_amount(raw.get("optimizedRevenue")),
        potential_increase=_to_amount(raw.get("potentialIncrease", raw.get("increase"))),
        opportunities=_text_list(raw.get("opportunities"), _OPPORTUNITY_TEXT_KEYS, cap),
    )


def _to_flag(raw: Any, default: bool = True) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False
    return default


def _build_compliance_checks(raw: Any, cap: int) -> ComplianceChecks:
    if not isinstance(raw, dict):
        return ComplianceChecks()
    domain = raw.get("domainCompliant", raw.get("cmsCompliant"))
    return ComplianceChecks(
        hipaa_compliant=_to_flag(raw.get("hipaaCompliant")),
        domain_compliant=_to_flag(domain),
        issues=_text_list(raw.get("issues"), _ISSUE_TEXT_KEYS, cap),
    )
