from enum import Enum


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def classify_risk(overall_score: int, total_issues: int, critical_issues: int) -> RiskLevel:
    """Classify chart risk; the first matching level wins."""
    if overall_score < 70 or total_issues > 15 or critical_issues > 3:
        return RiskLevel.CRITICAL
    if overall_score < 80 or total_issues > 10 or critical_issues > 1:
        return RiskLevel.HIGH
    if overall_score < 90 or total_issues > 5:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def requires_review(total_issues: int, critical_issues: int) -> bool:
    return total_issues > 10 or critical_issues > 0
