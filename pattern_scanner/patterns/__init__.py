"""Chart pattern detection.

Families:
- Pole-and-flag (Bull Flag, Bear Flag)
- Triangles (Ascending Triangle, Descending Triangle)
- Channels (ascending, descending, horizontal breakouts)
"""

from .config import DetectorConfig
from .config import PatternFamily
from .detector import detect_patterns
from .detector import scan_family
from .families import PatternSetup

__all__ = [
    "DetectorConfig",
    "PatternFamily",
    "PatternSetup",
    "detect_patterns",
    "scan_family",
]
