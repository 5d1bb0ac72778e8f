"""
Shared configuration, constants and data types.
"""

import dataclasses


# Clip shapes for image overlays
CLIP_RECTANGLE = "rectangle"
CLIP_CIRCLE = "circle"
CLIP_SHAPES = (CLIP_RECTANGLE, CLIP_CIRCLE)

# Text shrink policies
SHRINK_PROPORTIONAL = "proportional"
SHRINK_STEPPED = "stepped"
SHRINK_MODES = (SHRINK_PROPORTIONAL, SHRINK_STEPPED)
SHRINK_STEP_FRACTION = 0.02
SHRINK_FLOOR_FRACTION = 0.2
MAX_SHRINK_STEPS = 40

# Name text transforms
TEXT_TRANSFORM_NONE = "none"
TEXT_TRANSFORM_UPPER = "upper"
TEXT_TRANSFORM_TITLE = "title"
TEXT_TRANSFORMS = (TEXT_TRANSFORM_NONE, TEXT_TRANSFORM_UPPER, TEXT_TRANSFORM_TITLE)

DEFAULT_MIN_FONT_SIZE = 12.0
DEFAULT_EXPORT_MIN_FONT_SIZE = 24.0
DEFAULT_EXPORT_SCALE = 2
DEFAULT_PREVIEW_WIDTH = 600
DEFAULT_PREVIEW_HEIGHT = 800
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_BACKGROUND_COLOR = "#FFFFFF"
PDF_TEMPLATE_DPI = 150
MAX_PHOTO_BYTES = 10 * 1024 * 1024

FONT_CANDIDATES_REGULAR = (
	"/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
	"/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
	"/Library/Fonts/Arial.ttf",
	"C:/Windows/Fonts/arial.ttf",
)
FONT_CANDIDATES_BOLD = (
	"/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
	"/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
	"/Library/Fonts/Arial Bold.ttf",
	"C:/Windows/Fonts/arialbd.ttf",
)

# PDF output
PDF_FALLBACK_FONT = "Helvetica-Bold"
PDF_CUSTOM_FONT_NAME = "StampFont"
PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 10

# Loaded fonts kept in memory, one entry per (path, bold, pixel size)
FONT_CACHE_SIZE = 64

# Share outcomes, strategies and status values
OUTCOME_SUCCEEDED = "succeeded"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_FAILED = "failed"

STRATEGY_NATIVE_SHARE = "native-share"
STRATEGY_CLIPBOARD_AND_OPEN = "clipboard-and-open"
STRATEGY_DOWNLOAD_FALLBACK = "download-fallback"

STATUS_IDLE = "idle"
STATUS_SHARING = "sharing"
STATUS_DONE = "done"
STATUS_ERROR = "error"

DEFAULT_SHARE_TITLE = "Faith & Energy Conference 1.0"

# Platform compose endpoints. None means no web compose endpoint exists and
# the artifact is downloaded instead.
PLATFORM_URLS: dict[str, str | None] = {
	"linkedin": "https://www.linkedin.com/feed/",
	"twitter": "https://twitter.com/intent/tweet?text={caption}",
	"facebook": "https://www.facebook.com/",
	"whatsapp": "https://wa.me/?text={caption}",
	"instagram": None,
}
PLATFORM_NAMES = {
	"linkedin": "LinkedIn",
	"twitter": "Twitter/X",
	"facebook": "Facebook",
	"whatsapp": "WhatsApp",
	"instagram": "Instagram",
}


@dataclasses.dataclass(frozen=True)
class Size:
	width: float
	height: float


@dataclasses.dataclass
class ImageOverlay:
	x: float
	y: float
	width: float
	height: float
	source_width: float
	source_height: float
	clip: str = CLIP_RECTANGLE
	image_key: str = "photo"


@dataclasses.dataclass
class TextOverlay:
	x: float
	y: float
	text: str
	font_size_fraction: float
	max_width_fraction: float
	min_font_size: float = DEFAULT_MIN_FONT_SIZE
	bold: bool = False
	color: str = DEFAULT_TEXT_COLOR
	font_path: str | None = None


@dataclasses.dataclass(frozen=True)
class FontSpec:
	size: float
	bold: bool = False
	font_path: str | None = None


@dataclasses.dataclass
class ImagePlacement:
	index: int
	image_key: str
	clip: str
	box_x: float
	box_y: float
	box_width: float
	box_height: float
	image_x: float
	image_y: float
	image_width: float
	image_height: float

	@property
	def circle_center(self) -> tuple[float, float]:
		return (self.box_x + self.box_width / 2.0, self.box_y + self.box_height / 2.0)

	@property
	def circle_diameter(self) -> float:
		return self.box_width


@dataclasses.dataclass
class TextPlacement:
	index: int
	text: str
	x: float
	y: float
	font_size: float
	bold: bool
	color: str
	font_path: str | None
	max_width: float
	clamped: bool = False

	def font_spec(self) -> FontSpec:
		return FontSpec(size=self.font_size, bold=self.bold, font_path=self.font_path)


@dataclasses.dataclass
class DrawPlan:
	surface: Size
	template_x: float
	template_y: float
	template_width: float
	template_height: float
	primitives: list = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class ShareRequest:
	artifact: bytes
	caption: str
	filename: str
	title: str = DEFAULT_SHARE_TITLE
	platform_url: str | None = None
	platform_name: str = "the platform"


@dataclasses.dataclass
class NameSlot:
	x: float
	y: float
	font_size_fraction: float
	max_width_fraction: float
	min_font_size: float = DEFAULT_MIN_FONT_SIZE
	export_min_font_size: float = DEFAULT_EXPORT_MIN_FONT_SIZE
	bold: bool = False
	color: str = DEFAULT_TEXT_COLOR
	font_path: str | None = None
	text_transform: str = TEXT_TRANSFORM_NONE


@dataclasses.dataclass
class PhotoSlot:
	x: float
	y: float
	width: float
	height: float
	clip: str = CLIP_RECTANGLE


@dataclasses.dataclass
class GeneratorPreset:
	key: str
	template_path: str
	name_slot: NameSlot
	photo_slot: PhotoSlot | None
	filename_suffix: str
	caption: str = ""
	share_title: str = DEFAULT_SHARE_TITLE
	export_scale: int = DEFAULT_EXPORT_SCALE
	preview_width: int = DEFAULT_PREVIEW_WIDTH
	preview_height: int = DEFAULT_PREVIEW_HEIGHT
	shrink_mode: str = SHRINK_PROPORTIONAL


@dataclasses.dataclass
class PdfStampConfig:
	x: float = 81.0
	y: float = 360.0
	font_size: float = 32.0
	color: str = DEFAULT_TEXT_COLOR
	font_path: str | None = None


@dataclasses.dataclass
class RosterGroup:
	name: str
	template_path: str
	names: list[str]


@dataclasses.dataclass
class BatchResult:
	generated: int
	failed: int
	output_dirs: list[str]
