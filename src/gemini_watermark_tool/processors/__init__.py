from .image import (
    SUPPORTED_IMAGE_FORMATS,
    is_supported_image,
    process_image,
    read_image,
    write_image,
)

__all__ = [
    "process_image",
    "read_image",
    "write_image",
    "is_supported_image",
    "SUPPORTED_IMAGE_FORMATS",
]
