from enum import Enum


class DocumentKind(str, Enum):
    """Clinical document type; selects the analysis focus and expected scores."""

    OASIS_ASSESSMENT = "oasis_assessment"
    PLAN_OF_CARE = "plan_of_care"
    PHYSICIAN_ORDER = "physician_order"
    CLINICAL_NOTE = "clinical_note"
    EVALUATION = "evaluation"
    OTHER = "other"


_ALIASES: dict[str, DocumentKind] = {
    "oasis": DocumentKind.OASIS_ASSESSMENT,
    "poc": DocumentKind.PLAN_OF_CARE,
    "care_plan": DocumentKind.PLAN_OF_CARE,
    "order": DocumentKind.PHYSICIAN_ORDER,
    "rn_note": DocumentKind.CLINICAL_NOTE,
    "pt_note": DocumentKind.CLINICAL_NOTE,
    "ot_note": DocumentKind.CLINICAL_NOTE,
    "progress_note": DocumentKind.CLINICAL_NOTE,
}


def normalize_document_kind(raw: str | None) -> DocumentKind:
    """Map stored document_type values (including legacy aliases) onto a DocumentKind."""
    if not raw:
        return DocumentKind.OTHER
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return DocumentKind(key)
    except ValueError:
        return _ALIASES.get(key, DocumentKind.OTHER)
