from dataclasses import dataclass
from enum import Enum

from . import (
    LARGE_IMAGE_THRESHOLD,
    LARGE_MARGIN,
    LARGE_WATERMARK_SIZE,
    SMALL_MARGIN,
    SMALL_WATERMARK_SIZE,
)


class WatermarkSize(Enum):
    """Canonical watermark size classes."""

    SMALL = "small"
    LARGE = "large"

    @property
    def logo_size(self) -> int:
        return LARGE_WATERMARK_SIZE if self is WatermarkSize.LARGE else SMALL_WATERMARK_SIZE


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def intersect(self, other: "Rect") -> "Rect":
        """Intersection of two rectangles; empty results have zero size."""
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.right, other.right)
        y2 = min(self.bottom, other.bottom)
        if x2 <= x1 or y2 <= y1:
            return Rect(x1, y1, 0, 0)
        return Rect(x1, y1, x2 - x1, y2 - y1)


@dataclass(frozen=True)
class PlacementConfig:
    """Margins and logo size that fix the watermark position."""

    margin_right: int
    margin_bottom: int
    logo_size: int

    @classmethod
    def for_size(cls, size: WatermarkSize) -> "PlacementConfig":
        margin = LARGE_MARGIN if size is WatermarkSize.LARGE else SMALL_MARGIN
        return cls(margin, margin, size.logo_size)

    def raw_position(self, image_width: int, image_height: int) -> tuple[int, int]:
        """Top-left corner before clamping; negative when the image is too small."""
        return (
            image_width - self.margin_right - self.logo_size,
            image_height - self.margin_bottom - self.logo_size,
        )

    def get_position(self, image_width: int, image_height: int) -> tuple[int, int]:
        x, y = self.raw_position(image_width, image_height)
        return max(0, x), max(0, y)


@dataclass(frozen=True)
class Placement:
    """Resolved size class and pixel position for one image."""

    size: WatermarkSize
    config: PlacementConfig
    x: int
    y: int
    fits: bool  # False when the image cannot hold logo plus margins

    @property
    def region(self) -> Rect:
        return Rect(self.x, self.y, self.config.logo_size, self.config.logo_size)


def get_watermark_size(image_width: int, image_height: int) -> WatermarkSize:
    """
    Classify the watermark size for an image.

    Large only when BOTH dimensions exceed 1024px, so 1024x1024 is Small.
    """
    if image_width > LARGE_IMAGE_THRESHOLD and image_height > LARGE_IMAGE_THRESHOLD:
        return WatermarkSize.LARGE
    return WatermarkSize.SMALL


def get_watermark_config(image_width: int, image_height: int) -> PlacementConfig:
    return PlacementConfig.for_size(get_watermark_size(image_width, image_height))


def resolve_placement(
    image_width: int,
    image_height: int,
    size: WatermarkSize | None = None,
) -> Placement:
    """
    Calculate watermark placement based on image dimensions.

    Watermark is positioned in the bottom-right corner. ``size`` overrides
    the automatic classification.
    """
    if size is None:
        size = get_watermark_size(image_width, image_height)
    config = PlacementConfig.for_size(size)

    raw_x, raw_y = config.raw_position(image_width, image_height)
    return Placement(
        size=size,
        config=config,
        x=max(0, raw_x),
        y=max(0, raw_y),
        fits=raw_x >= 0 and raw_y >= 0,
    )


def get_fallback_watermark_region(image_width: int, image_height: int) -> Rect:
    """Default watermark box used when detection is inconclusive."""
    return resolve_placement(image_width, image_height).region
