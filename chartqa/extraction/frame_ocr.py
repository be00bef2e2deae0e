import re
import threading
from dataclasses import dataclass

from chartqa.config.thresholds import PipelineThresholds
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.exceptions import InferenceCancelledError, InferenceError
from chartqa.inference.retry import RetryingInvoker
from chartqa.logging.logger import Log

FRAME_INSTRUCTIONS = (
    "Extract all text content from this video frame. Include text from slides, "
    "visual aids, diagrams, labels, and any written content."
)

_REFUSAL_RE = re.compile(
    r"^\s*(?:i'?m sorry|sorry|i (?:can(?:no|')t|am unable|could not|couldn'?t)|unable to"
    r"|there (?:is|are) no (?:visible |readable )?text|no (?:visible |readable )?text)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class FrameImage:
    label: str
    image_url: str


def is_usable_frame_text(text: str, min_chars: int) -> bool:
    """Reject refusals ("I can't find any text...") and near-empty answers."""
    stripped = text.strip()
    return len(stripped) > min_chars and not _REFUSAL_RE.match(stripped)


class FrameTextReader:
    """OCRs frames one by one with the vision model and labels accepted text."""

    def __init__(
        self,
        client: BaseInferenceClient,
        invoker: RetryingInvoker,
        thresholds: PipelineThresholds,
        *,
        vision_model: str,
    ) -> None:
        self._client = client
        self._invoker = invoker
        self._thresholds = thresholds
        self._vision_model = vision_model

    def read(self, frames: list[FrameImage], cancel: threading.Event | None = None) -> str:
        accepted: list[str] = []
        for frame in frames:
            text = self._read_one(frame, cancel)
            if is_usable_frame_text(text, self._thresholds.min_frame_text_chars):
                accepted.append(f"[{frame.label}]:\n{text.strip()}")
            else:
                Log.debug(f"No usable text in {frame.label}")
        Log.info(f"Extracted text from {len(accepted)}/{len(frames)} frames")
        return "\n\n".join(accepted)

    def _read_one(self, frame: FrameImage, cancel: threading.Event | None) -> str:
        try:
            return self._invoker.invoke(
                f"frame OCR {frame.label}",
                lambda: self._client.describe_image(
                    model=self._vision_model,
                    image_url=frame.image_url,
                    instructions=FRAME_INSTRUCTIONS,
                ),
                cancel=cancel,
            )
        except InferenceCancelledError:
            raise
        except InferenceError as exc:
            Log.warning(f"OCR failed for {frame.label}: {exc}")
            return ""
