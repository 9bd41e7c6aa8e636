# Algorithm constants calibrated against Gemini's overlay
LOGO_VALUE: float = 255.0  # White watermark value
LOGO_COLOR: tuple[float, float, float] = (255.0, 255.0, 255.0)  # Overlay colour used to calibrate alpha
ALPHA_THRESHOLD: float = 0.002  # Skip if alpha below this
ALPHA_EPSILON: float = 1e-3  # Alpha within this of 1.0 cannot be inverted

# Resolution thresholds
LARGE_IMAGE_THRESHOLD: int = 1024

# Watermark sizes
SMALL_WATERMARK_SIZE: int = 48
LARGE_WATERMARK_SIZE: int = 96
SMALL_MARGIN: int = 32
LARGE_MARGIN: int = 64

# Reference captures bundled in gemini_watermark_tool.assets
SMALL_ASSET_NAME: str = "bg_48.png"
LARGE_ASSET_NAME: str = "bg_96.png"

# Detection settings
MIN_DETECTION_SIZE: int = 8  # Smallest usable region side
MIN_REFERENCE_HEIGHT: int = 8  # Reference patch above must be taller than this
MIN_REFERENCE_ROWS: int = 4  # ...and keep more rows than this after clipping
BRIGHTNESS_SCALE: float = 25.0  # Brightness diff giving a full score
VARIANCE_NOISE_FLOOR: float = 3.0  # Reference stddev below this is treated as flat
CANNY_LOW: int = 30
CANNY_HIGH: int = 100
EDGE_DENSITY_MIN: float = 0.01
EDGE_DENSITY_MAX: float = 0.25
EDGE_DENSITY_PEAK: float = 0.06
EDGE_DENSITY_FALLOFF: float = 0.15

# Confidence weights
BASE_SCORE: float = 0.15  # Bonus for sitting at the expected position
BRIGHTNESS_WEIGHT: float = 0.35
VARIANCE_WEIGHT: float = 0.35
EDGE_WEIGHT: float = 0.15

DETECTION_METHOD: str = "alpha_correlation"
