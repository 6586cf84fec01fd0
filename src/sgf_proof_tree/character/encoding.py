"""Encoding detection for file-backed SGF input.

Solver dumps are almost always ASCII or UTF-8, but comments written by other
tools occasionally carry Latin-1 bytes. Detection cascades through:

1. Byte order mark
2. Strict UTF-8 validation
3. Fallback encoding (Latin-1 by default, which decodes any byte string)
"""

import codecs
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional

ASCII_MAX = 0x80
FAST_PATH_SAMPLE_SIZE = 1024


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    EXPLICIT = "explicit"
    BOM = "bom"
    UTF8_VALIDATION = "utf8_validation"
    FALLBACK = "fallback"


@dataclass
class EncodingResult:
    """Result of encoding detection.

    Attributes:
        encoding: Detected encoding name (canonical form)
        method: Detection method used
        bom_length: Number of leading bytes that belong to the BOM
        issues: List of issues found during detection
    """
    encoding: str
    method: DetectionMethod
    bom_length: int = 0
    issues: List[str] = field(default_factory=list)


class BOMDetector:
    """Byte Order Mark (BOM) detection for the common Unicode encodings."""

    BOM_PATTERNS: ClassVar[Dict[bytes, str]] = {
        codecs.BOM_UTF8: "utf-8",
        codecs.BOM_UTF32_LE: "utf-32-le",
        codecs.BOM_UTF32_BE: "utf-32-be",
        codecs.BOM_UTF16_LE: "utf-16-le",
        codecs.BOM_UTF16_BE: "utf-16-be",
    }

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on BOM.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if BOM detected, None otherwise
        """
        if not data:
            return None

        # Longest patterns first: the UTF-32-LE BOM starts with the UTF-16-LE one
        for bom_bytes, encoding in sorted(
            self.BOM_PATTERNS.items(), key=lambda x: len(x[0]), reverse=True
        ):
            if data.startswith(bom_bytes):
                return EncodingResult(
                    encoding=encoding,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom_bytes),
                )
        return None


class EncodingDetector:
    """Cascading encoding detector for SGF files."""

    def __init__(self, fallback_encoding: str = "latin-1", detect_bom: bool = True) -> None:
        """Initialize detector.

        Args:
            fallback_encoding: Encoding used when the data is not valid UTF-8
            detect_bom: Whether to honour byte order marks
        """
        self.fallback_encoding = fallback_encoding
        self.detect_bom = detect_bom
        self.bom_detector = BOMDetector()

    def detect(self, data: bytes) -> EncodingResult:
        """Detect the encoding of ``data``."""
        if self.detect_bom:
            bom_result = self.bom_detector.detect(data)
            if bom_result is not None:
                return bom_result

        sample = data[:FAST_PATH_SAMPLE_SIZE]
        if all(b < ASCII_MAX for b in sample) and len(data) <= FAST_PATH_SAMPLE_SIZE:
            return EncodingResult(encoding="utf-8", method=DetectionMethod.UTF8_VALIDATION)

        try:
            data.decode("utf-8", errors="strict")
        except UnicodeDecodeError as e:
            return EncodingResult(
                encoding=self.fallback_encoding,
                method=DetectionMethod.FALLBACK,
                issues=[f"UTF-8 decode error: {e}"],
            )
        return EncodingResult(encoding="utf-8", method=DetectionMethod.UTF8_VALIDATION)

    def decode(self, data: bytes, encoding: Optional[str] = None) -> tuple[str, EncodingResult]:
        """Decode ``data`` with an explicit or detected encoding.

        Args:
            data: Raw file content
            encoding: Explicit codec name; skips detection when given

        Returns:
            Tuple of (decoded text, detection result)
        """
        if encoding is not None:
            result = EncodingResult(encoding=encoding, method=DetectionMethod.EXPLICIT)
        else:
            result = self.detect(data)
        return data[result.bom_length:].decode(result.encoding), result
