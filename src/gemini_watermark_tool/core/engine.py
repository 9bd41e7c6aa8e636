import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..assets import get_asset_path
from ..errors import InvalidRegionError, LoadError
from . import (
    LARGE_ASSET_NAME,
    LARGE_WATERMARK_SIZE,
    LOGO_COLOR,
    LOGO_VALUE,
    SMALL_ASSET_NAME,
    SMALL_WATERMARK_SIZE,
)
from .alpha_map import AlphaMaps, load_reference, resample_alpha_map
from .blend import add_watermark_alpha_blend, ensure_rgb, remove_watermark_alpha_blend
from .detector import DetectionResult, detect_watermark_region
from .position import Rect, WatermarkSize, get_fallback_watermark_region, resolve_placement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Auto:
    """Pick the watermark size from the image dimensions."""


@dataclass(frozen=True)
class Forced:
    """Use a specific watermark size regardless of image dimensions."""

    size: WatermarkSize


SizeSelection = Auto | Forced

AUTO = Auto()


def _forced_size(size: SizeSelection) -> WatermarkSize | None:
    return size.size if isinstance(size, Forced) else None


class WatermarkEngine:
    """
    Adds and removes the Gemini watermark with reversible alpha blending.

    The engine owns two immutable alpha maps (48x48 and 96x96) built once
    from background captures. Instances hold no other state, so one engine
    can serve many images concurrently; calls on the same image buffer must
    be serialised by the caller.
    """

    def __init__(self, alpha_maps: AlphaMaps, logo_value: ArrayLike = LOGO_VALUE):
        """
        Initialize engine.

        Args:
            alpha_maps: Canonical small and large alpha maps
            logo_value: Overlay intensity, scalar or one value per channel
        """
        self.alpha_maps = alpha_maps
        self.logo_value = logo_value

    @classmethod
    def from_files(
        cls,
        bg_small: str | Path,
        bg_large: str | Path,
        logo_value: ArrayLike = LOGO_VALUE,
        logo_color: tuple[float, ...] = LOGO_COLOR,
    ) -> "WatermarkEngine":
        """Load background captures from files."""
        maps = AlphaMaps.build(load_reference(bg_small), load_reference(bg_large), logo_color)
        logger.info("Loaded background captures from files")
        return cls(maps, logo_value)

    @classmethod
    def from_bytes(
        cls,
        png_small: bytes,
        png_large: bytes,
        logo_value: ArrayLike = LOGO_VALUE,
        logo_color: tuple[float, ...] = LOGO_COLOR,
    ) -> "WatermarkEngine":
        """Decode background captures from encoded image bytes."""
        maps = AlphaMaps.build(load_reference(png_small), load_reference(png_large), logo_color)
        logger.info("Loaded embedded background captures")
        return cls(maps, logo_value)

    @classmethod
    def from_assets(
        cls,
        logo_value: ArrayLike = LOGO_VALUE,
        logo_color: tuple[float, ...] = LOGO_COLOR,
    ) -> "WatermarkEngine":
        """Use the captures bundled in the assets package."""
        try:
            png_small = get_asset_path(SMALL_ASSET_NAME).read_bytes()
            png_large = get_asset_path(LARGE_ASSET_NAME).read_bytes()
        except OSError as e:
            raise LoadError(f"Bundled background capture not available: {e}") from e
        return cls.from_bytes(png_small, png_large, logo_value, logo_color)

    def alpha_map(self, size: WatermarkSize) -> NDArray[np.float32]:
        """Read-only canonical alpha map for a size class."""
        return self.alpha_maps.for_size(size)

    def create_interpolated_alpha(self, width: int, height: int) -> NDArray[np.float32]:
        """
        Alpha map for a custom watermark size.

        Always resampled from the 96x96 map, the highest resolution source.
        """
        return resample_alpha_map(self.alpha_maps.large, width, height)

    def remove_watermark(
        self,
        image: NDArray[np.uint8],
        size: SizeSelection = AUTO,
    ) -> NDArray[np.uint8]:
        """
        Remove the watermark at its standard position.

        Args:
            image: Input image; 3-channel uint8 arrays are modified in place
            size: AUTO or Forced(WatermarkSize)

        Returns:
            The 3-channel result
        """
        image = ensure_rgb(image)
        img_h, img_w = image.shape[:2]
        placement = resolve_placement(img_w, img_h, _forced_size(size))
        alpha_map = self.alpha_map(placement.size)

        logger.debug(
            "Removing watermark at (%d, %d) with %dx%d alpha map (size: %s)",
            placement.x, placement.y, alpha_map.shape[1], alpha_map.shape[0],
            placement.size.value,
        )
        return remove_watermark_alpha_blend(
            image, alpha_map, placement.x, placement.y, self.logo_value
        )

    def add_watermark(
        self,
        image: NDArray[np.uint8],
        size: SizeSelection = AUTO,
    ) -> NDArray[np.uint8]:
        """Blend the watermark in at its standard position."""
        image = ensure_rgb(image)
        img_h, img_w = image.shape[:2]
        placement = resolve_placement(img_w, img_h, _forced_size(size))
        alpha_map = self.alpha_map(placement.size)

        logger.debug(
            "Adding watermark at (%d, %d) with %dx%d alpha map (size: %s)",
            placement.x, placement.y, alpha_map.shape[1], alpha_map.shape[0],
            placement.size.value,
        )
        return add_watermark_alpha_blend(
            image, alpha_map, placement.x, placement.y, self.logo_value
        )

    def _alpha_for_region(self, region: Rect) -> NDArray[np.float32]:
        if region.is_empty():
            raise InvalidRegionError(
                f"Region {region.width}x{region.height} at ({region.x}, {region.y}) has no area"
            )
        if region.width == region.height == SMALL_WATERMARK_SIZE:
            logger.info("Custom region matches 48x48, using small alpha map")
            return self.alpha_maps.small
        if region.width == region.height == LARGE_WATERMARK_SIZE:
            logger.info("Custom region matches 96x96, using large alpha map")
            return self.alpha_maps.large
        return self.create_interpolated_alpha(region.width, region.height)

    def remove_watermark_at_region(
        self,
        image: NDArray[np.uint8],
        region: Rect,
    ) -> NDArray[np.uint8]:
        """Remove a watermark occupying an arbitrary region."""
        image = ensure_rgb(image)
        alpha_map = self._alpha_for_region(region)
        logger.info(
            "Removing watermark at (%d,%d) with custom %dx%d alpha map",
            region.x, region.y, region.width, region.height,
        )
        return remove_watermark_alpha_blend(image, alpha_map, region.x, region.y, self.logo_value)

    def add_watermark_at_region(
        self,
        image: NDArray[np.uint8],
        region: Rect,
    ) -> NDArray[np.uint8]:
        """Blend a watermark scaled to an arbitrary region."""
        image = ensure_rgb(image)
        alpha_map = self._alpha_for_region(region)
        logger.info(
            "Adding watermark at (%d,%d) with custom %dx%d alpha map",
            region.x, region.y, region.width, region.height,
        )
        return add_watermark_alpha_blend(image, alpha_map, region.x, region.y, self.logo_value)

    def detect_watermark(self, image: NDArray[np.uint8]) -> DetectionResult | None:
        return detect_watermark_region(image)

    @staticmethod
    def fallback_region(image_width: int, image_height: int) -> Rect:
        return get_fallback_watermark_region(image_width, image_height)
