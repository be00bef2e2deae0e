import threading

from chartqa.config.thresholds import PipelineThresholds
from chartqa.conversion.base import BaseConversionService
from chartqa.conversion.exceptions import ConversionError, ConversionUnavailableError
from chartqa.extraction.base import BaseExtractionChain, ensure_not_cancelled
from chartqa.extraction.exceptions import InsufficientContentError
from chartqa.extraction.frame_ocr import FrameImage, FrameTextReader
from chartqa.extraction.models import (
    ExtractionRequest,
    ExtractionResult,
    FileKind,
    SourceBreakdown,
)
from chartqa.extraction.source_loader import SourceHandle
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.exceptions import InferenceCancelledError, InferenceError
from chartqa.inference.retry import RetryingInvoker
from chartqa.logging.logger import Log

AUDIO_HEADER = "=== AUDIO TRANSCRIPT (spoken content) ==="
VISUAL_HEADER = "=== VISUAL CONTENT (text shown in video frames) ==="

_MB = 1024 * 1024


class VideoExtractionChain(BaseExtractionChain):
    """Union of an audio transcript and OCR'd frame text.

    Server-side frame rendering depends on the conversion backend and is not
    guaranteed; without it, and without client-rendered frames, the visual
    half is simply empty.
    """

    def __init__(
        self,
        *,
        client: BaseInferenceClient,
        invoker: RetryingInvoker,
        conversion: BaseConversionService,
        frame_reader: FrameTextReader,
        thresholds: PipelineThresholds,
        transcription_model: str,
        language: str = "en",
        frame_count: int = 8,
    ) -> None:
        self._client = client
        self._invoker = invoker
        self._conversion = conversion
        self._frame_reader = frame_reader
        self._thresholds = thresholds
        self._transcription_model = transcription_model
        self._language = language
        self._frame_count = frame_count

    def extract(
        self,
        source: SourceHandle,
        request: ExtractionRequest,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        file_name = request.display_name
        notes: list[str] = []

        audio = self._audio_text(source, file_name, notes, cancel)
        visual = self._visual_text(source, request, notes, cancel)

        if audio and visual:
            text = f"{AUDIO_HEADER}\n{audio}\n\n{VISUAL_HEADER}\n{visual}"
        else:
            text = audio or visual

        if not text:
            raise InsufficientContentError(
                f"No content extracted from video {file_name}: {'; '.join(notes)}"
            )
        Log.info(
            f"Video {file_name}: {len(audio)} audio chars, {len(visual)} visual chars"
        )
        return ExtractionResult(
            text=text,
            succeeded=True,
            diagnostic_message="; ".join(notes),
            source_breakdown=SourceBreakdown(audio_chars=len(audio), visual_chars=len(visual)),
            file_kind=FileKind.VIDEO,
        )

    def _audio_text(
        self,
        source: SourceHandle,
        file_name: str,
        notes: list[str],
        cancel: threading.Event | None,
    ) -> str:
        data = source.data()
        limit = self._thresholds.audio_size_limit_bytes
        if len(data) > limit:
            notes.append(
                f"file is {len(data) / _MB:.1f}MB and exceeds the "
                f"{limit / _MB:.0f}MB audio transcription size limit"
            )
            return ""

        ensure_not_cancelled(cancel, "audio transcription")
        try:
            transcript = self._invoker.invoke(
                f"transcription of {file_name}",
                lambda: self._client.transcribe(
                    model=self._transcription_model,
                    audio_bytes=data,
                    file_name=file_name,
                    language=self._language,
                ),
                cancel=cancel,
            )
        except InferenceCancelledError:
            raise
        except InferenceError as exc:
            notes.append(f"audio transcription failed: {exc}")
            return ""

        transcript = transcript.strip()
        if not transcript:
            notes.append("audio track contained no recognisable speech")
        return transcript

    def _visual_text(
        self,
        source: SourceHandle,
        request: ExtractionRequest,
        notes: list[str],
        cancel: threading.Event | None,
    ) -> str:
        if request.client_frames:
            frames = [
                FrameImage(label=frame.timestamp or f"Frame {i + 1}", image_url=frame.image_url)
                for i, frame in enumerate(request.client_frames)
            ]
        else:
            frames = self._server_frames(source, request.display_name, notes, cancel)
            if not frames:
                return ""

        text = self._frame_reader.read(frames, cancel)
        if not text:
            notes.append(f"no readable text in {len(frames)} video frames")
        return text

    def _server_frames(
        self,
        source: SourceHandle,
        file_name: str,
        notes: list[str],
        cancel: threading.Event | None,
    ) -> list[FrameImage]:
        ensure_not_cancelled(cancel, "server-side frame extraction")
        try:
            original = source.reference if not source.is_inline else source.data()
            urls = self._conversion.video_to_frames(
                original, file_name=file_name, frame_count=self._frame_count
            )
        except ConversionUnavailableError as exc:
            notes.append(f"no visual frames available ({exc})")
            return []
        except ConversionError as exc:
            notes.append(f"no visual frames available (frame extraction failed: {exc})")
            return []
        if not urls:
            notes.append("no visual frames available (frame extraction returned none)")
        return [FrameImage(label=f"Frame {i + 1}", image_url=url) for i, url in enumerate(urls)]
