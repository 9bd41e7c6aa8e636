import io
import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
from numpy.typing import NDArray
from PIL import Image

from ..errors import LoadError, ResizeError
from . import LARGE_WATERMARK_SIZE, LOGO_COLOR, SMALL_WATERMARK_SIZE
from .position import WatermarkSize

logger = logging.getLogger(__name__)

ReferenceSource = str | Path | bytes


def load_reference(source: ReferenceSource) -> NDArray[np.uint8]:
    """
    Decode a reference capture from a file path or encoded bytes.

    Returns:
        RGB uint8 array (H, W, 3)

    Raises:
        LoadError: if the capture is missing, corrupt or has no pixels
    """
    label = "<bytes>" if isinstance(source, bytes) else str(source)
    try:
        fp = io.BytesIO(source) if isinstance(source, bytes) else source
        with Image.open(fp) as img:
            if img.mode != "RGB":
                img = img.convert("RGB")
            array = np.array(img, dtype=np.uint8)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise LoadError(f"Failed to load reference capture {label}: {e}") from e

    if array.size == 0:
        raise LoadError(f"Reference capture {label} is empty")
    return array


def _resize(
    array: NDArray,
    width: int,
    height: int,
    interpolation: int,
) -> NDArray:
    if width <= 0 or height <= 0:
        raise ResizeError(f"Cannot resize to {width}x{height}")
    try:
        resized = cv2.resize(array, (width, height), interpolation=interpolation)
    except cv2.error as e:
        raise ResizeError(f"Resize to {width}x{height} failed: {e}") from e
    if resized.shape[:2] != (height, width):
        raise ResizeError(
            f"Resize produced {resized.shape[1]}x{resized.shape[0]}, expected {width}x{height}"
        )
    return resized


def build_alpha_map(
    reference: NDArray,
    target_size: int,
    logo_color: tuple[float, ...] = LOGO_COLOR,
) -> NDArray[np.float32]:
    """
    Calculate an alpha map from a background capture.

    The capture is the watermark rendered over black, so each pixel holds
    alpha * logo_color. Alpha is recovered by projecting the pixel onto the
    overlay colour: alpha = <pixel, color> / <color, color>. For a white
    overlay this is the channel mean / 255.

    Args:
        reference: Capture as uint8 array (H, W), (H, W, 3) or (H, W, 4)
        target_size: Canonical watermark size (48 or 96)
        logo_color: Overlay colour the capture was taken with

    Returns:
        Float32 array (target_size, target_size) with values in [0, 1]
    """
    ref = np.asarray(reference)
    if ref.size == 0:
        raise LoadError("Reference capture is empty")

    ref = ref.astype(np.float32)
    if ref.ndim == 2:
        ref = np.repeat(ref[:, :, np.newaxis], 3, axis=2)
    elif ref.shape[2] == 1:
        ref = np.repeat(ref, 3, axis=2)
    else:
        ref = ref[:, :, :3]

    height, width = ref.shape[:2]
    if width != target_size or height != target_size:
        logger.warning(
            "Capture is %dx%d, expected %dx%d. Resizing.",
            width, height, target_size, target_size,
        )
        ref = _resize(np.ascontiguousarray(ref), target_size, target_size, cv2.INTER_AREA)

    color = np.asarray(logo_color, dtype=np.float32)
    norm = float(np.dot(color, color))
    if color.shape != (3,) or norm <= 0:
        raise ValueError(f"Invalid logo colour: {logo_color}")

    alpha_map = ref @ color / norm
    return np.clip(alpha_map, 0.0, 1.0).astype(np.float32)


def resample_alpha_map(
    alpha_map: NDArray[np.float32],
    width: int,
    height: int,
) -> NDArray[np.float32]:
    """
    Resample an alpha map to a custom size.

    Bilinear when either dimension grows, area averaging when shrinking.
    """
    src_h, src_w = alpha_map.shape[:2]
    if width == src_w and height == src_h:
        return alpha_map.copy()

    upscale = width > src_w or height > src_h
    interpolation = cv2.INTER_LINEAR if upscale else cv2.INTER_AREA
    resized = _resize(alpha_map.astype(np.float32), width, height, interpolation)

    logger.debug(
        "Created interpolated alpha map: %dx%d -> %dx%d (method: %s)",
        src_w, src_h, width, height, "bilinear" if upscale else "area",
    )
    return np.clip(resized, 0.0, 1.0).astype(np.float32)


def _freeze(array: NDArray, size: int) -> NDArray[np.float32]:
    frozen = np.array(array, dtype=np.float32)
    if frozen.shape != (size, size):
        raise ValueError(f"Alpha map must be {size}x{size}, got {frozen.shape}")
    frozen.flags.writeable = False
    return frozen


@dataclass(frozen=True)
class AlphaMaps:
    """
    The two canonical alpha maps, immutable once built.

    Arrays are stored as read-only copies, so one instance can be shared by
    any number of compositing and detection calls.
    """

    small: NDArray[np.float32]
    large: NDArray[np.float32]

    def __post_init__(self):
        object.__setattr__(self, "small", _freeze(self.small, SMALL_WATERMARK_SIZE))
        object.__setattr__(self, "large", _freeze(self.large, LARGE_WATERMARK_SIZE))

    @classmethod
    def build(
        cls,
        small_reference: NDArray,
        large_reference: NDArray,
        logo_color: tuple[float, ...] = LOGO_COLOR,
    ) -> "AlphaMaps":
        """Build both maps from their background captures."""
        maps = cls(
            small=build_alpha_map(small_reference, SMALL_WATERMARK_SIZE, logo_color),
            large=build_alpha_map(large_reference, LARGE_WATERMARK_SIZE, logo_color),
        )
        logger.debug(
            "Large alpha map range: %.4f - %.4f",
            float(maps.large.min()), float(maps.large.max()),
        )
        return maps

    def for_size(self, size: WatermarkSize) -> NDArray[np.float32]:
        return self.large if size is WatermarkSize.LARGE else self.small
