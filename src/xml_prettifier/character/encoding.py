"""Encoding detection for XML input bytes.

Detection runs in a fixed order: byte order mark, then the ``encoding`` pseudo
attribute of the XML declaration, then the configured fallback (UTF-8). The
detected encoding is reused when writing the formatted output so that a
document keeps the encoding it arrived in.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

# Only the start of the document is searched for an XML declaration
DECLARATION_SCAN_LIMIT = 1024

# Longest patterns first: the UTF-32-LE mark starts with the UTF-16-LE mark
BOM_PATTERNS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    BOM = "bom"
    XML_DECLARATION = "xml_declaration"
    FALLBACK = "fallback"


@dataclass
class EncodingResult:
    """Result of encoding detection.

    Attributes:
        encoding: Detected encoding name (canonical Python codec name)
        method: Detection method used
        bom_length: Number of leading bytes occupied by a byte order mark
        issues: Problems noticed during detection that did not stop it
        declared_encoding: Encoding named by the XML declaration, if any
    """
    encoding: str
    method: DetectionMethod
    bom_length: int = 0
    issues: List[str] = field(default_factory=list)
    declared_encoding: str = ""

    @property
    def has_bom(self) -> bool:
        return self.bom_length > 0


def normalize_encoding(name: str) -> str:
    """Normalize an encoding label to Python's canonical codec name."""
    try:
        return codecs.lookup(name).name
    except LookupError:
        return name.lower()


def bom_for(encoding: str) -> bytes:
    """Byte order mark written for ``encoding``; empty when it has none."""
    canonical = normalize_encoding(encoding)
    for bom, name in BOM_PATTERNS:
        if normalize_encoding(name) == canonical:
            return bom
    return b""


class BOMDetector:
    """Byte Order Mark (BOM) detection for the Unicode encodings."""

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on BOM.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if BOM detected, None otherwise
        """
        for bom, encoding in BOM_PATTERNS:
            if data.startswith(bom):
                return EncodingResult(
                    encoding=encoding,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom),
                )
        return None


class XMLDeclarationParser:
    """Parser for XML encoding declarations."""

    XML_DECLARATION_PATTERN = re.compile(
        rb'^\s*<\?xml\s[^>]*?encoding\s*=\s*["\']([A-Za-z][A-Za-z0-9._-]*)["\']'
    )

    # A declaration readable as ASCII rules out these multi-byte families
    NON_ASCII_COMPATIBLE: ClassVar[Tuple[str, ...]] = ("utf-16", "utf-32")

    def parse_declaration(self, data: bytes) -> Optional[EncodingResult]:
        """Parse encoding from XML declaration.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if a usable declaration was found, None otherwise
        """
        match = self.XML_DECLARATION_PATTERN.match(data[:DECLARATION_SCAN_LIMIT])
        if not match:
            return None

        declared = match.group(1).decode("ascii")
        try:
            canonical = codecs.lookup(declared).name
        except LookupError:
            return EncodingResult(
                encoding="",
                method=DetectionMethod.XML_DECLARATION,
                issues=[f"Unknown declared encoding: {declared}"],
                declared_encoding=declared,
            )

        if canonical.startswith(self.NON_ASCII_COMPATIBLE):
            return EncodingResult(
                encoding="",
                method=DetectionMethod.XML_DECLARATION,
                issues=[f"Declared encoding {declared} contradicts ASCII declaration"],
                declared_encoding=declared,
            )

        return EncodingResult(
            encoding=canonical,
            method=DetectionMethod.XML_DECLARATION,
            declared_encoding=declared,
        )


class EncodingDetector:
    """Runs BOM detection, declaration parsing and fallback in sequence."""

    def __init__(
        self,
        fallback_encoding: str = "utf-8",
        detect_bom: bool = True,
        honor_xml_declaration: bool = True,
    ) -> None:
        self.fallback_encoding = normalize_encoding(fallback_encoding)
        self.detect_bom = detect_bom
        self.honor_xml_declaration = honor_xml_declaration
        self._bom_detector = BOMDetector()
        self._declaration_parser = XMLDeclarationParser()

    def detect(self, data: bytes) -> EncodingResult:
        """Detect the encoding of ``data``; always returns a usable result."""
        issues: List[str] = []
        declared = ""

        if self.detect_bom:
            result = self._bom_detector.detect(data)
            if result is not None:
                return result

        if self.honor_xml_declaration:
            result = self._declaration_parser.parse_declaration(data)
            if result is not None:
                if result.encoding:
                    return result
                issues.extend(result.issues)
                declared = result.declared_encoding

        return EncodingResult(
            encoding=self.fallback_encoding,
            method=DetectionMethod.FALLBACK,
            issues=issues,
            declared_encoding=declared,
        )
