import logging

import cv2
import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import EmptyInputError, ImageFormatError
from . import ALPHA_EPSILON, ALPHA_THRESHOLD, LOGO_VALUE
from .position import Rect

logger = logging.getLogger(__name__)


def ensure_rgb(image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """
    Normalise an image to 3 channels.

    3-channel input is returned as is (same buffer) unless it is read-only,
    in which case a writable copy is returned. 4-channel input drops its
    alpha channel and 1-channel input is replicated.
    """
    if image.size == 0:
        raise EmptyInputError("Empty image provided")
    if image.dtype != np.uint8:
        raise ImageFormatError(f"Expected 8-bit image, got {image.dtype}")

    if image.ndim == 2:
        return cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_GRAY2RGB)
    if image.ndim != 3:
        raise ImageFormatError(f"Unsupported image shape {image.shape}")

    channels = image.shape[2]
    if channels == 3:
        return image if image.flags.writeable else image.copy()
    if channels == 4:
        return np.ascontiguousarray(image[:, :, :3])
    if channels == 1:
        return np.repeat(image, 3, axis=2)
    raise ImageFormatError(f"Unsupported channel count: {channels}")


def _overlap(
    image: NDArray,
    alpha_map: NDArray[np.float32],
    x: int,
    y: int,
) -> tuple[tuple[slice, slice], NDArray[np.float32]] | None:
    """Clip the alpha map placed at (x, y) to the image bounds."""
    img_h, img_w = image.shape[:2]
    h, w = alpha_map.shape[:2]

    placed = Rect(x, y, w, h)
    roi = placed.intersect(Rect(0, 0, img_w, img_h))
    if roi.is_empty():
        logger.warning(
            "Watermark region (%d, %d, %dx%d) is outside the %dx%d image, skipping",
            x, y, w, h, img_w, img_h,
        )
        return None

    ax, ay = roi.x - x, roi.y - y
    alpha = alpha_map[ay : ay + roi.height, ax : ax + roi.width]
    return (slice(roi.y, roi.bottom), slice(roi.x, roi.right)), alpha


def add_watermark_alpha_blend(
    image_array: NDArray[np.uint8],
    alpha_map: NDArray[np.float32],
    x: int,
    y: int,
    logo_value: ArrayLike = LOGO_VALUE,
) -> NDArray[np.uint8]:
    """
    Blend the watermark into an image.

    Formula: watermarked = alpha * logo + (1 - alpha) * original

    Args:
        image_array: Input image (H, W, 3), modified in place
        alpha_map: Alpha transparency map (h, w)
        x, y: Top-left corner of the watermark
        logo_value: Overlay intensity, scalar or one value per channel

    Returns:
        The same image array
    """
    overlap = _overlap(image_array, alpha_map, x, y)
    if overlap is None:
        return image_array
    (rows, cols), alpha = overlap

    region = image_array[rows, cols, :3].astype(np.float32)
    logo = np.asarray(logo_value, dtype=np.float32)
    alpha_expanded = alpha[:, :, np.newaxis]

    result = alpha_expanded * logo + (1.0 - alpha_expanded) * region

    image_array[rows, cols, :3] = np.clip(np.rint(result), 0, 255).astype(np.uint8)
    return image_array


def remove_watermark_alpha_blend(
    image_array: NDArray[np.uint8],
    alpha_map: NDArray[np.float32],
    x: int,
    y: int,
    logo_value: ArrayLike = LOGO_VALUE,
) -> NDArray[np.uint8]:
    """
    Remove watermark from image using reverse alpha blending.

    Formula: original = (watermarked - alpha * logo) / (1 - alpha)

    Pixels whose alpha is at or within ALPHA_EPSILON of 1.0 lost their
    background entirely and are passed through unchanged, as are pixels
    below ALPHA_THRESHOLD.

    Args:
        image_array: Input image (H, W, 3), modified in place
        alpha_map: Alpha transparency map (h, w)
        x, y: Top-left corner of the watermark
        logo_value: Overlay intensity, scalar or one value per channel

    Returns:
        The same image array
    """
    overlap = _overlap(image_array, alpha_map, x, y)
    if overlap is None:
        return image_array
    (rows, cols), alpha = overlap

    region = image_array[rows, cols, :3].astype(np.float32)
    logo = np.asarray(logo_value, dtype=np.float32)

    # Only pixels with significant, invertible alpha are restored
    mask = (alpha >= ALPHA_THRESHOLD) & (alpha < 1.0 - ALPHA_EPSILON)
    safe_alpha = np.where(mask, alpha, 0.0).astype(np.float32)
    alpha_expanded = safe_alpha[:, :, np.newaxis]

    restored = (region - alpha_expanded * logo) / (1.0 - alpha_expanded)
    result = np.where(mask[:, :, np.newaxis], restored, region)

    image_array[rows, cols, :3] = np.clip(np.rint(result), 0, 255).astype(np.uint8)
    return image_array
