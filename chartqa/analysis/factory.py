from chartqa.analysis.analyzer import QualityAnalyzer
from chartqa.analysis.base import BaseQualityAnalyzer
from chartqa.config.settings import Settings
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.retry import RetryingInvoker


class QualityAnalyzerFactory:
    """Creates the configured quality analyzer."""

    @classmethod
    def create(
        cls,
        settings: Settings,
        *,
        client: BaseInferenceClient,
        invoker: RetryingInvoker,
    ) -> BaseQualityAnalyzer:
        return QualityAnalyzer(
            client=client,
            invoker=invoker,
            thresholds=settings.thresholds(),
            model=settings.inference_text_model,
            temperature=settings.inference_temperature,
        )
