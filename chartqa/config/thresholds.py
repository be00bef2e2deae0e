from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineThresholds:
    """Tunable constants shared by the extraction chains and the analyzer."""

    # extraction
    min_content_chars: int = 100
    min_frame_text_chars: int = 10
    audio_size_limit_bytes: int = 25 * 1024 * 1024

    # analysis
    analysis_text_limit: int = 15_000
    stored_text_limit: int = 50_000
    max_list_items: int = 10
    max_opportunities: int = 5
    default_score: int = 75

    # heuristic fallback
    heuristic_base_score: int = 60
    heuristic_identifier_bonus: int = 10
    heuristic_length_bonus: int = 5
    heuristic_length_chars: int = 1_000
    heuristic_medication_bonus: int = 5
    heuristic_signature_bonus: int = 5
    heuristic_code_bonus: int = 10
    heuristic_confidence_score: int = 40

    # chart report
    report_recommendation_cap: int = 15
    report_compliance_issue_cap: int = 10
    report_opportunity_cap: int = 10
