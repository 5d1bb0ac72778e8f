"""
Pillow rendering backend: text measurement, asset loading and rasterization.
"""

# Standard Library
import functools
import io
import math
import os
import pathlib

# PIP3 modules
import fitz
import PIL.Image
import PIL.ImageChops
import PIL.ImageDraw
import PIL.ImageFont
import PIL.ImageOps

# local repo modules
import template_personalizer as tp
import template_personalizer.config


FontSpec = tp.config.FontSpec
DrawPlan = tp.config.DrawPlan
ImagePlacement = tp.config.ImagePlacement
TextPlacement = tp.config.TextPlacement

CLIP_CIRCLE = tp.config.CLIP_CIRCLE
FONT_CANDIDATES_REGULAR = tp.config.FONT_CANDIDATES_REGULAR
FONT_CANDIDATES_BOLD = tp.config.FONT_CANDIDATES_BOLD
DEFAULT_BACKGROUND_COLOR = tp.config.DEFAULT_BACKGROUND_COLOR
PDF_TEMPLATE_DPI = tp.config.PDF_TEMPLATE_DPI
MAX_PHOTO_BYTES = tp.config.MAX_PHOTO_BYTES

FONT_CACHE_SIZE = tp.config.FONT_CACHE_SIZE


#============================================
def parse_hex_color(value: str) -> tuple[int, int, int]:
	"""
	Parse a hex color string into RGB bytes.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0-255 range.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		return (0, 0, 0)
	red = int(value[1:3], 16)
	green = int(value[3:5], 16)
	blue = int(value[5:7], 16)
	return (red, green, blue)


#============================================
@functools.lru_cache(maxsize=FONT_CACHE_SIZE)
def _load_font(font_path: str | None, bold: bool, pixel_size: int) -> PIL.ImageFont.ImageFont:
	candidates: list[str] = []
	if font_path:
		candidates.append(font_path)
	if bold:
		candidates.extend(FONT_CANDIDATES_BOLD)
	candidates.extend(FONT_CANDIDATES_REGULAR)

	for path in candidates:
		if os.path.exists(path):
			return PIL.ImageFont.truetype(path, size=pixel_size)
	return PIL.ImageFont.load_default(size=pixel_size)


#============================================
def load_font(font_spec: FontSpec) -> PIL.ImageFont.ImageFont:
	"""
	Load a font for a font spec, falling back to system and built-in fonts.

	Fonts are cached per (path, bold, pixel size) in a bounded LRU cache.

	Args:
		font_spec: Size, weight and optional font file.

	Returns:
		Pillow font object.
	"""
	pixel_size = max(1, int(round(font_spec.size)))
	return _load_font(font_spec.font_path, font_spec.bold, pixel_size)


#============================================
def measure_text_width(text: str, font_spec: FontSpec) -> float:
	"""
	Measure the rendered advance width of a single line of text.

	Args:
		text: Text content.
		font_spec: Font to measure with.

	Returns:
		Width in pixels.
	"""
	if not text:
		return 0.0
	font = load_font(font_spec)
	return float(font.getlength(text))


#============================================
def rasterize_pdf_page(path: pathlib.Path, dpi: int = PDF_TEMPLATE_DPI, page_index: int = 0) -> PIL.Image.Image:
	"""
	Render one PDF page to an RGB image.

	Args:
		path: PDF path.
		dpi: Render resolution.
		page_index: Page to render.

	Returns:
		PIL image.
	"""
	document = fitz.open(path)
	try:
		page = document[page_index]
		scale = dpi / 72.0
		matrix = fitz.Matrix(scale, scale)
		pixmap = page.get_pixmap(matrix=matrix, alpha=False)
		image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	finally:
		document.close()
	return image


#============================================
def load_template(path: pathlib.Path, dpi: int = PDF_TEMPLATE_DPI) -> PIL.Image.Image:
	"""
	Load a template from a raster image or the first page of a PDF.

	Args:
		path: Template path.
		dpi: Resolution used when the template is a PDF.

	Returns:
		RGB PIL image.
	"""
	path = pathlib.Path(path)
	if not path.is_file():
		raise FileNotFoundError(f"Template not found: {path}")
	if path.suffix.lower() == ".pdf":
		return rasterize_pdf_page(path, dpi)
	with PIL.Image.open(path) as image:
		image.load()
		return image.convert("RGB")


#============================================
def load_photo(path: pathlib.Path) -> PIL.Image.Image:
	"""
	Load a user photo, honoring EXIF orientation.

	Args:
		path: Photo path.

	Returns:
		RGB PIL image.
	"""
	path = pathlib.Path(path)
	if not path.is_file():
		raise FileNotFoundError(f"Photo not found: {path}")
	size = path.stat().st_size
	if size > MAX_PHOTO_BYTES:
		raise ValueError(f"Photo is too large ({size} bytes); limit is {MAX_PHOTO_BYTES} bytes")
	data = path.read_bytes()
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except PIL.UnidentifiedImageError as error:
		raise ValueError(f"Not an image file: {path}") from error
	image = PIL.ImageOps.exif_transpose(image)
	return image.convert("RGB")


#============================================
def build_clip_mask(clip: str, width: int, height: int) -> PIL.Image.Image:
	"""
	Build an 8-bit mask for a placement box.

	Args:
		clip: Clip shape.
		width: Box width in pixels.
		height: Box height in pixels.

	Returns:
		Mask image, 255 inside the clip.
	"""
	if clip != CLIP_CIRCLE:
		return PIL.Image.new("L", (width, height), 255)
	mask = PIL.Image.new("L", (width, height), 0)
	draw = PIL.ImageDraw.Draw(mask)
	# diameter follows the box width, centered vertically
	center_y = height / 2.0
	radius = width / 2.0
	draw.ellipse((0, center_y - radius, width - 1, center_y + radius - 1), fill=255)
	return mask


#============================================
def draw_image_placement(
	surface: PIL.Image.Image,
	placement: ImagePlacement,
	source: PIL.Image.Image,
) -> None:
	"""
	Draw a cover-fitted image into its clipped box.

	Args:
		surface: Target RGB image.
		placement: Resolved image placement.
		source: Source image.
	"""
	box_width = int(round(placement.box_width))
	box_height = int(round(placement.box_height))
	if box_width <= 0 or box_height <= 0:
		return
	image_width = max(1, int(math.ceil(placement.image_width)))
	image_height = max(1, int(math.ceil(placement.image_height)))
	resized = source.convert("RGBA").resize(
		(image_width, image_height),
		PIL.Image.Resampling.LANCZOS,
	)
	layer = PIL.Image.new("RGBA", (box_width, box_height), (0, 0, 0, 0))
	offset_x = int(round(placement.image_x - placement.box_x))
	offset_y = int(round(placement.image_y - placement.box_y))
	layer.paste(resized, (offset_x, offset_y))
	mask = build_clip_mask(placement.clip, box_width, box_height)
	alpha = PIL.ImageChops.multiply(layer.getchannel("A"), mask)
	surface.paste(
		layer.convert("RGB"),
		(int(round(placement.box_x)), int(round(placement.box_y))),
		alpha,
	)


#============================================
def draw_text_placement(draw: PIL.ImageDraw.ImageDraw, placement: TextPlacement) -> None:
	"""
	Draw text centered on its anchor, horizontally and vertically.

	Args:
		draw: ImageDraw for the surface.
		placement: Resolved text placement.
	"""
	if not placement.text:
		return
	font = load_font(placement.font_spec())
	left, top, right, bottom = draw.textbbox((0, 0), placement.text, font=font)
	text_x = placement.x - (right - left) / 2.0 - left
	text_y = placement.y - (bottom - top) / 2.0 - top
	draw.text(
		(text_x, text_y),
		placement.text,
		font=font,
		fill=parse_hex_color(placement.color),
	)


#============================================
def rasterize_plan(
	plan: DrawPlan,
	template_image: PIL.Image.Image | None,
	images: dict[str, PIL.Image.Image],
	background: str = DEFAULT_BACKGROUND_COLOR,
) -> PIL.Image.Image:
	"""
	Rasterize a draw plan onto a new surface.

	Args:
		plan: DrawPlan from the layout engine.
		template_image: Template image, or None to leave the box empty.
		images: Overlay source images keyed by image_key.
		background: Fill color around the fitted template.

	Returns:
		RGB PIL image of the surface size.
	"""
	surface_size = (int(round(plan.surface.width)), int(round(plan.surface.height)))
	surface = PIL.Image.new("RGB", surface_size, parse_hex_color(background))
	if template_image is not None:
		template_size = (
			max(1, int(round(plan.template_width))),
			max(1, int(round(plan.template_height))),
		)
		fitted = template_image.convert("RGB").resize(template_size, PIL.Image.Resampling.LANCZOS)
		surface.paste(fitted, (int(round(plan.template_x)), int(round(plan.template_y))))

	draw = PIL.ImageDraw.Draw(surface)
	for primitive in plan.primitives:
		if isinstance(primitive, ImagePlacement):
			source = images.get(primitive.image_key)
			if source is not None:
				draw_image_placement(surface, primitive, source)
			continue
		if isinstance(primitive, TextPlacement):
			draw_text_placement(draw, primitive)
			continue
	return surface
