"""AI-backed document quality analyzer with a deterministic fallback."""

import threading
from pathlib import Path

from chartqa.analysis.base import BaseQualityAnalyzer
from chartqa.analysis.document_kinds import DocumentKind, normalize_document_kind
from chartqa.analysis.heuristic import HeuristicScorer
from chartqa.analysis.models import AnalysisResult, DocumentMeta
from chartqa.analysis.prompt_loader import (
    load_document_focus,
    load_prompt_template,
    load_response_contract,
)
from chartqa.analysis.validator import validate_and_build
from chartqa.config.thresholds import PipelineThresholds
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.exceptions import InferenceCancelledError, InferenceError
from chartqa.inference.json_recovery import safe_parse_json
from chartqa.inference.retry import RetryingInvoker
from chartqa.logging.logger import Log

DEFAULT_SYSTEM_PROMPT = (
    "You are a home health clinical documentation QA auditor. "
    "Always answer with a single valid JSON object."
)


class QualityAnalyzer(BaseQualityAnalyzer):
    """Scores extracted document text through the inference client."""

    def __init__(
        self,
        *,
        client: BaseInferenceClient,
        invoker: RetryingInvoker,
        thresholds: PipelineThresholds,
        model: str,
        temperature: float = 0.1,
        prompt_template_path: Path | None = None,
        response_contract_path: Path | None = None,
        document_focus_path: Path | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._invoker = invoker
        self._thresholds = thresholds
        self._model = model
        self._temperature = max(0.0, min(0.3, temperature))
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._response_contract = load_response_contract(response_contract_path)
        self._focus = load_document_focus(document_focus_path)
        self._heuristic = HeuristicScorer(thresholds)

    def analyze(
        self,
        extracted_text: str,
        meta: DocumentMeta,
        cancel: threading.Event | None = None,
    ) -> AnalysisResult:
        kind = normalize_document_kind(meta.kind)
        focus = self._focus_for(kind)
        optional_scores = frozenset(focus.get("scores", []))
        prompt = self._build_prompt(extracted_text, meta, focus, optional_scores)
        Log.debug(f"Analysis prompt:\n{prompt}")

        def attempt() -> AnalysisResult:
            raw = self._client.complete(
                model=self._model,
                temperature=self._temperature,
                system_prompt=self._system_prompt,
                user_prompt=prompt,
            )
            Log.debug(f"AI raw response:\n{raw}")
            return validate_and_build(
                safe_parse_json(raw),
                document_kind=kind.value,
                thresholds=self._thresholds,
                optional_scores=optional_scores,
            )

        try:
            result = self._invoker.invoke(
                f"Analysis of document {meta.document_id}", attempt, cancel=cancel
            )
        except InferenceCancelledError:
            raise
        except InferenceError as exc:
            Log.warning(
                f"AI analysis failed, using heuristic fallback: {exc}",
                document_id=meta.document_id,
            )
            fallback_meta = DocumentMeta(
                document_id=meta.document_id,
                kind=kind.value,
                file_name=meta.file_name,
                chart_id=meta.chart_id,
                patient_id=meta.patient_id,
                patient_name=meta.patient_name,
            )
            return self._heuristic.score(extracted_text, fallback_meta, reason=str(exc))

        Log.info(
            f"Analysis complete: quality={result.quality_score} "
            f"issues={len(result.flagged_issues)} critical={result.critical_issue_count}",
            document_id=meta.document_id,
        )
        return result

    def truncate(self, text: str) -> str:
        """Deterministic prefix of ``text`` sent for scoring."""
        return text[: self._thresholds.analysis_text_limit]

    def _focus_for(self, kind: DocumentKind) -> dict:
        return self._focus.get(kind.value) or self._focus.get(DocumentKind.OTHER.value, {})

    def _build_prompt(
        self,
        text: str,
        meta: DocumentMeta,
        focus: dict,
        optional_scores: frozenset[str],
    ) -> str:
        requested = ["quality", "completeness", "confidence", *sorted(optional_scores)]
        return self._prompt_template.format(
            document_label=focus.get("label", meta.kind),
            focus=focus.get("focus", ""),
            metadata=meta.as_prompt_lines() or "(none)",
            requested_scores=", ".join(requested),
            response_contract=self._response_contract,
            document_text=self.truncate(text),
        )
