import json
from pathlib import Path
from typing import Any

from chartqa.analysis.exceptions import AnalysisError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the analysis prompt template.

    Args:
        path: Path to the template file.
              Defaults to the bundled analysis_prompt.txt.

    Returns:
        The raw template string with ``str.format`` placeholders.

    Raises:
        AnalysisError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "analysis_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AnalysisError(f"Failed to load prompt template: {exc}") from exc


def load_response_contract(path: Path | None = None) -> str:
    """Load the JSON response contract shown to the model."""
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "analysis_response_contract.json"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AnalysisError(f"Failed to load response contract: {exc}") from exc


def load_document_focus(path: Path | None = None) -> dict[str, dict[str, Any]]:
    """Load per-document-kind review focus.

    Each entry maps a DocumentKind value to ``{"label", "focus", "scores"}``.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "document_focus.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise AnalysisError(f"Failed to load document focus: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"Invalid document focus file: {exc}") from exc
    if not isinstance(data, dict):
        raise AnalysisError("Document focus file must contain an object")
    return data
