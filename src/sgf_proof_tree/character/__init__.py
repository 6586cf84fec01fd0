"""Character layer: streams and encoding detection for SGF input."""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
)
from .stream import (
    CharacterStream,
    FileCharacterStream,
    ProgressCallback,
    StringCharacterStream,
)

__all__ = [
    "BOMDetector",
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "CharacterStream",
    "FileCharacterStream",
    "ProgressCallback",
    "StringCharacterStream",
]
