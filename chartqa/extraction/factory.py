from pathlib import Path

from chartqa.config.settings import Settings
from chartqa.conversion.base import BaseConversionService
from chartqa.conversion.factory import ConversionServiceFactory
from chartqa.extraction.frame_ocr import FrameTextReader
from chartqa.extraction.models import FileKind
from chartqa.extraction.orchestrator import ContentExtractor
from chartqa.extraction.pdf_chain import PdfExtractionChain
from chartqa.extraction.slides_chain import SlideDeckExtractionChain
from chartqa.extraction.source_loader import SourceLoader
from chartqa.extraction.video_chain import VideoExtractionChain
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.retry import RetryingInvoker


class ContentExtractorFactory:
    """Wires the per-kind extraction chains into a ContentExtractor."""

    @classmethod
    def create(
        cls,
        settings: Settings,
        *,
        client: BaseInferenceClient,
        invoker: RetryingInvoker,
        conversion: BaseConversionService | None = None,
        loader: SourceLoader | None = None,
    ) -> ContentExtractor:
        """Raises ConfigurationError if the conversion backend is misconfigured."""
        thresholds = settings.thresholds()
        if conversion is None:
            conversion = ConversionServiceFactory.create(settings)
        if loader is None:
            loader = SourceLoader(
                files_root=Path(settings.files_root),
                timeout_seconds=settings.conversion_timeout_seconds,
            )
        pdf_chain = PdfExtractionChain(conversion, thresholds)
        frame_reader = FrameTextReader(
            client, invoker, thresholds, vision_model=settings.inference_vision_model
        )
        chains = {
            FileKind.PDF: pdf_chain,
            FileKind.POWERPOINT: SlideDeckExtractionChain(
                conversion, pdf_chain, loader, thresholds
            ),
            FileKind.VIDEO: VideoExtractionChain(
                client=client,
                invoker=invoker,
                conversion=conversion,
                frame_reader=frame_reader,
                thresholds=thresholds,
                transcription_model=settings.inference_transcription_model,
                language=settings.transcription_language,
                frame_count=settings.video_frame_count,
            ),
        }
        return ContentExtractor(loader, chains)
