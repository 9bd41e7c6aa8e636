"""Remove and reapply the Gemini image watermark with reversible alpha blending."""

from .core.alpha_map import AlphaMaps, build_alpha_map, load_reference, resample_alpha_map
from .core.detector import DetectionResult, detect_watermark_region, is_watermark_detected
from .core.engine import AUTO, Auto, Forced, SizeSelection, WatermarkEngine
from .core.position import (
    Placement,
    PlacementConfig,
    Rect,
    WatermarkSize,
    get_fallback_watermark_region,
    resolve_placement,
)
from .errors import (
    EmptyInputError,
    ImageFormatError,
    InvalidRegionError,
    LoadError,
    ResizeError,
    WatermarkError,
)

__version__ = "0.1.0"

__all__ = [
    "AUTO",
    "AlphaMaps",
    "Auto",
    "DetectionResult",
    "EmptyInputError",
    "Forced",
    "ImageFormatError",
    "InvalidRegionError",
    "LoadError",
    "Placement",
    "PlacementConfig",
    "Rect",
    "ResizeError",
    "SizeSelection",
    "WatermarkEngine",
    "WatermarkError",
    "WatermarkSize",
    "build_alpha_map",
    "detect_watermark_region",
    "get_fallback_watermark_region",
    "is_watermark_detected",
    "load_reference",
    "resample_alpha_map",
    "resolve_placement",
]
