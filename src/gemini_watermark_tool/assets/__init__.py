# Background captures of the watermark over black (bg_48.png, bg_96.png)
from importlib import resources
from importlib.resources.abc import Traversable


def get_asset_path(filename: str) -> Traversable:
    """Locate a bundled background capture; it may not exist in source checkouts."""
    return resources.files(__package__).joinpath(filename)
