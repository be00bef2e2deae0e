from chartqa.aggregation.aggregator import ChartAggregator
from chartqa.aggregation.models import ChartReport, DocumentOutcome
from chartqa.aggregation.risk import RiskLevel, classify_risk

__all__ = [
    "ChartAggregator",
    "ChartReport",
    "DocumentOutcome",
    "RiskLevel",
    "classify_risk",
]
