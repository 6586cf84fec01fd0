"""Pull-based character streams feeding the tokenizer.

A stream hands out one character at a time with one character of lookahead
(``peek``), can step back by one (``unget``) and reports its offset
(``tell``). End of input is signalled by the empty string.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Union

from sgf_proof_tree.shared.config import StreamConfig
from sgf_proof_tree.shared.logging import get_logger

from .encoding import EncodingDetector, EncodingResult

# (offset, total) -> None
ProgressCallback = Callable[[int, int], None]

END_OF_STREAM = ""


class CharacterStream(ABC):
    """Character source with lookahead-1, one-step rewind and offsets."""

    @abstractmethod
    def peek(self) -> str:
        """Return the next character without consuming it, ``""`` at end."""

    @abstractmethod
    def get(self) -> str:
        """Consume and return the next character, ``""`` at end."""

    @abstractmethod
    def unget(self) -> None:
        """Step back one character; no-op at the start of the stream."""

    @abstractmethod
    def tell(self) -> int:
        """Return the current offset."""

    @property
    @abstractmethod
    def length(self) -> int:
        """Total number of characters in the source."""

    @property
    def source_text(self) -> Optional[str]:
        """Full source text when it is held in memory, else None."""
        return None


class StringCharacterStream(CharacterStream):
    """Character stream over in-memory text."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._index = 0

    def peek(self) -> str:
        if self._index >= len(self._text):
            return END_OF_STREAM
        return self._text[self._index]

    def get(self) -> str:
        if self._index >= len(self._text):
            return END_OF_STREAM
        char = self._text[self._index]
        self._index += 1
        return char

    def unget(self) -> None:
        if self._index > 0:
            self._index -= 1

    def tell(self) -> int:
        return self._index

    @property
    def length(self) -> int:
        return len(self._text)

    @property
    def source_text(self) -> Optional[str]:
        return self._text


class FileCharacterStream(StringCharacterStream):
    """Character stream over a file on disk.

    The file is read and decoded when the stream is created, so a missing or
    unreadable path fails immediately with ``OSError``. Offsets refer to the
    decoded text.
    """

    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[StreamConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Open and decode ``path``.

        Args:
            path: File to read
            config: Encoding settings
            correlation_id: Optional correlation ID for request tracking

        Raises:
            OSError: If the file cannot be opened for reading
        """
        self.path = Path(path)
        self.config = config or StreamConfig()
        logger = get_logger(__name__, correlation_id, "file_stream")

        with self.path.open("rb") as handle:
            data = handle.read()

        detector = EncodingDetector(
            fallback_encoding=self.config.fallback_encoding,
            detect_bom=self.config.detect_bom,
        )
        text, self.encoding_result = detector.decode(data, self.config.encoding)
        logger.debug(
            "Opened SGF file",
            extra={
                "path": str(self.path),
                "bytes": len(data),
                "encoding": self.encoding_result.encoding,
                "detection_method": self.encoding_result.method.value,
            },
        )
        super().__init__(text)
        self._closed = False

    @property
    def encoding(self) -> EncodingResult:
        """Encoding detection result for the file."""
        return self.encoding_result

    def close(self) -> None:
        """Release the decoded buffer; the stream reads as exhausted afterwards."""
        self._text = ""
        self._index = 0
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "FileCharacterStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
