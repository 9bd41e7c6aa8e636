import logging
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from ..core.detector import detect_watermark_region
from ..core.engine import AUTO, SizeSelection, WatermarkEngine
from ..core.position import Rect
from ..errors import LoadError

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_FORMATS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tiff"}

# Encoder settings: highest JPEG quality, lossless WebP, default-speed PNG
SAVE_OPTIONS: dict[str, dict] = {
    ".jpg": {"quality": 100},
    ".jpeg": {"quality": 100},
    ".png": {"compress_level": 6},
    ".webp": {"lossless": True},
}


def is_supported_image(path: Path) -> bool:
    """Check if file is a supported image format."""
    return path.suffix.lower() in SUPPORTED_IMAGE_FORMATS


def read_image(path: Path) -> NDArray[np.uint8]:
    """Load an image as an RGB array, flattening alpha and palettes."""
    try:
        with Image.open(path) as img:
            if img.mode != "RGB":
                img = img.convert("RGB")
            image_array = np.array(img, dtype=np.uint8)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise LoadError(f"Failed to load image: {path}: {e}") from e

    if image_array.size == 0:
        raise LoadError(f"Image has no pixels: {path}")
    return image_array


def write_image(image_array: NDArray[np.uint8], path: Path) -> Path:
    """Save an RGB array, creating the parent directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    options = SAVE_OPTIONS.get(path.suffix.lower(), {})
    Image.fromarray(image_array).save(path, **options)
    return path


def process_image(
    input_path: Path,
    engine: WatermarkEngine,
    output_path: Path | None = None,
    suffix: str = "_output",
    remove: bool = True,
    size: SizeSelection = AUTO,
    region: Rect | None = None,
    min_confidence: float | None = None,
) -> Path | None:
    """
    Process a single image to remove or add the watermark.

    Args:
        input_path: Path to input image
        engine: Engine holding the alpha maps
        output_path: Optional explicit output path. If None, uses input name with suffix.
        suffix: Suffix to add to filename if output_path not specified
        remove: Remove the watermark (True) or add it (False)
        size: Watermark size selection for the standard position
        region: Custom region; overrides the standard position and size
        min_confidence: Only process when detection reaches this confidence

    Returns:
        Path to the output file, or None if the image was skipped
    """
    if output_path is None:
        output_path = input_path.parent / f"{input_path.stem}{suffix}{input_path.suffix}"

    image_array = read_image(input_path)
    height, width = image_array.shape[:2]
    logger.info("Processing: %s (%dx%d)", input_path.name, width, height)

    if min_confidence is not None:
        detection = detect_watermark_region(image_array)
        confidence = detection.confidence if detection else 0.0
        if confidence < min_confidence:
            logger.info(
                "Skipping %s: confidence %.2f below %.2f",
                input_path.name, confidence, min_confidence,
            )
            return None

    if region is not None:
        if remove:
            result_array = engine.remove_watermark_at_region(image_array, region)
        else:
            result_array = engine.add_watermark_at_region(image_array, region)
    elif remove:
        result_array = engine.remove_watermark(image_array, size)
    else:
        result_array = engine.add_watermark(image_array, size)

    write_image(result_array, output_path)
    logger.info("Saved: %s", output_path.name)
    return output_path
