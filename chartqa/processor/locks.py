import threading
from collections.abc import Generator
from contextlib import contextmanager

from chartqa.processor.exceptions import DocumentBusyError


class DocumentLockRegistry:
    """At most one in-flight extraction+analysis per document id (process-wide)."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._active: set[int] = set()

    @contextmanager
    def hold(self, document_id: int) -> Generator[None, None, None]:
        """Claim ``document_id`` for the duration of the block.

        Raises:
            DocumentBusyError: if another pipeline holds the document.
        """
        with self._guard:
            if document_id in self._active:
                raise DocumentBusyError(f"Document {document_id} is already being processed")
            self._active.add(document_id)
        try:
            yield
        finally:
            with self._guard:
                self._active.discard(document_id)

    def is_held(self, document_id: int) -> bool:
        with self._guard:
            return document_id in self._active
