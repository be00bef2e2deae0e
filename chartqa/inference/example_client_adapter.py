"""Offline inference client adapter.

Returns fixed, deterministic answers without any network calls. Useful for
local development, tests, and as a template for new provider adapters:
implement BaseInferenceClient and register the provider in
InferenceClientFactory.
"""

import json
from typing import ClassVar

from chartqa.inference.client_base import BaseInferenceClient


class ExampleClientAdapter(BaseInferenceClient):
    """Deterministic stand-in for a real provider."""

    DEFAULT_ANALYSIS: ClassVar[dict[str, object]] = {
        "qualityScore": 80,
        "completenessScore": 80,
        "confidenceScore": 50,
        "complianceScore": 80,
        "flaggedIssues": [],
        "recommendations": ["Offline analysis adapter in use; verify with a live provider"],
        "financialImpact": {"opportunities": []},
        "complianceChecks": {"hipaaCompliant": True, "domainCompliant": True, "issues": []},
    }

    def complete(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_mode
        return json.dumps(self.DEFAULT_ANALYSIS)

    def describe_image(self, *, model: str, image_url: str, instructions: str) -> str:
        _ = model, image_url, instructions
        return ""

    def transcribe(
        self,
        *,
        model: str,
        audio_bytes: bytes,
        file_name: str,
        language: str,
    ) -> str:
        _ = model, audio_bytes, file_name, language
        return ""
