from dataclasses import dataclass


@dataclass(frozen=True)
class ChartRequest:
    """Chart-level QA request; exactly one of chart_id / patient_id is set."""

    chart_id: str | None = None
    patient_id: str | None = None
    include_ai_analysis: bool = True
    force_re_extract: bool = False

    def __post_init__(self) -> None:
        if bool(self.chart_id) == bool(self.patient_id):
            raise ValueError("Exactly one of chart_id or patient_id must be provided")
