"""Character processing layer: encoding detection and strict decoding."""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    XMLDeclarationParser,
    bom_for,
)
from .stream import CharacterStreamProcessor, CharacterStreamResult

__all__ = [
    "BOMDetector",
    "CharacterStreamProcessor",
    "CharacterStreamResult",
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "XMLDeclarationParser",
    "bom_for",
]
