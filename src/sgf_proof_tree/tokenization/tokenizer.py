"""SGF tokenization over a pull-based character stream.

The tokenizer turns characters into a lazy sequence of tokens:

* ``(``, ``)`` and ``;`` become single-character tokens;
* ``[`` ... ``]`` becomes a VALUE token (``\\`` escapes the next character);
* a run of ASCII letters, digits and underscores becomes a TAG token;
* whitespace between tokens is skipped;
* anything else is a :class:`LexicalError`.
"""

import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from sgf_proof_tree.character.stream import (
    END_OF_STREAM,
    CharacterStream,
    ProgressCallback,
)
from sgf_proof_tree.shared.errors import LexicalError
from sgf_proof_tree.shared.logging import get_logger

TAG_CHARACTERS = frozenset(string.ascii_letters + string.digits + "_")
ESCAPE_CHARACTER = "\\"
WHITESPACE = frozenset(" \t\n\r\v\f")


class TokenType(Enum):
    """SGF token kinds."""

    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    SEMICOLON = auto()
    TAG = auto()
    VALUE = auto()
    END_OF_FILE = auto()
    NONE = auto()           # Placeholder before the first token


_SINGLE_CHARACTER_TOKENS = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    ";": TokenType.SEMICOLON,
}


@dataclass(frozen=True)
class Token:
    """A single token with its half-open source span ``[start, end)``."""

    type: TokenType
    value: str
    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate token span."""
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid token span {self.start}:{self.end}")

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end


class SGFTokenizer:
    """Lazy tokenizer over a :class:`CharacterStream`.

    Examples:
        >>> from sgf_proof_tree.character import StringCharacterStream
        >>> tokenizer = SGFTokenizer(StringCharacterStream("(;B[aa])"))
        >>> [token.type.name for token in tokenizer]
        ['LEFT_PAREN', 'SEMICOLON', 'TAG', 'VALUE', 'RIGHT_PAREN', 'END_OF_FILE']
    """

    def __init__(
        self,
        stream: CharacterStream,
        progress_callback: Optional[ProgressCallback] = None,
        total_length: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the tokenizer.

        Args:
            stream: Character source
            progress_callback: Called with ``(offset, total_length)`` after every
                token except END_OF_FILE
            total_length: Total reported to the progress callback; defaults to
                the stream length
            correlation_id: Optional correlation ID for request tracking
        """
        self.stream = stream
        self.progress_callback = progress_callback
        self.total_length = stream.length if total_length is None else total_length
        self.logger = get_logger(__name__, correlation_id, "sgf_tokenizer")

        offset = stream.tell()
        self._current = Token(TokenType.NONE, "", offset, offset)
        self.tokens_generated = 0

    @property
    def current_token(self) -> Token:
        """Last token produced, without advancing."""
        return self._current

    def next_token(self) -> Token:
        """Advance and return the next token.

        Raises:
            LexicalError: On an invalid character or an unterminated value
        """
        self._current = self._read_token()
        if self._current.type is not TokenType.END_OF_FILE:
            self.tokens_generated += 1
            if self.progress_callback is not None:
                self.progress_callback(self.stream.tell(), self.total_length)
        return self._current

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including END_OF_FILE."""
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.END_OF_FILE:
                return

    def _read_token(self) -> Token:
        stream = self.stream
        while True:
            char = stream.get()
            if char == END_OF_STREAM:
                offset = stream.tell()
                return Token(TokenType.END_OF_FILE, "", offset, offset)

            token_type = _SINGLE_CHARACTER_TOKENS.get(char)
            if token_type is not None:
                offset = stream.tell()
                return Token(token_type, char, offset - 1, offset)

            if char == "[":
                return self._read_value(stream.tell() - 1)

            if char in TAG_CHARACTERS:
                return self._read_tag(char, stream.tell() - 1)

            if char in WHITESPACE:
                continue

            offset = stream.tell()
            raise LexicalError(f"Invalid character {char!r}", offset - 1, offset)

    def _read_value(self, start: int) -> Token:
        """Read a bracketed value; the opening ``[`` is already consumed."""
        stream = self.stream
        chars = []
        escape = False
        while True:
            char = stream.get()
            if char == END_OF_STREAM:
                offset = stream.tell()
                raise LexicalError("Unexpected end of file", offset, offset)
            if char == "]" and not escape:
                break
            # The escape character stays in the raw value text
            chars.append(char)
            escape = char == ESCAPE_CHARACTER and not escape
        return Token(TokenType.VALUE, "".join(chars), start, stream.tell())

    def _read_tag(self, first: str, start: int) -> Token:
        stream = self.stream
        chars = [first]
        while stream.peek() in TAG_CHARACTERS:
            chars.append(stream.get())
        return Token(TokenType.TAG, "".join(chars), start, stream.tell())
