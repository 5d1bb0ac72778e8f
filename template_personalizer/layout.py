"""
Layout engine: template fit, overlay placement and text shrink-to-fit.
"""

# Standard Library
import collections.abc

# local repo modules
import template_personalizer as tp
import template_personalizer.config
import template_personalizer.errors


Size = tp.config.Size
FontSpec = tp.config.FontSpec
ImageOverlay = tp.config.ImageOverlay
TextOverlay = tp.config.TextOverlay
ImagePlacement = tp.config.ImagePlacement
TextPlacement = tp.config.TextPlacement
DrawPlan = tp.config.DrawPlan
InvalidGeometry = tp.errors.InvalidGeometry
InvalidOverlaySpec = tp.errors.InvalidOverlaySpec

CLIP_SHAPES = tp.config.CLIP_SHAPES
SHRINK_PROPORTIONAL = tp.config.SHRINK_PROPORTIONAL
SHRINK_STEPPED = tp.config.SHRINK_STEPPED
SHRINK_MODES = tp.config.SHRINK_MODES
SHRINK_STEP_FRACTION = tp.config.SHRINK_STEP_FRACTION
SHRINK_FLOOR_FRACTION = tp.config.SHRINK_FLOOR_FRACTION
MAX_SHRINK_STEPS = tp.config.MAX_SHRINK_STEPS

MeasureFunc = collections.abc.Callable[[str, FontSpec], float]


#============================================
def validate_size(size: Size, label: str) -> None:
	"""
	Reject sizes that cannot be drawn into.

	Args:
		size: Size to check.
		label: Name used in the error message.
	"""
	# comparisons are written so NaN fails too
	if not size.width > 0 or not size.height > 0:
		raise InvalidGeometry(f"{label} must have positive dimensions, got {size.width}x{size.height}")


#============================================
def _check_fraction(index: int, name: str, value: float) -> None:
	if not 0.0 <= value <= 1.0:
		raise InvalidOverlaySpec(index, f"{name}={value} is outside [0, 1]")


#============================================
def validate_overlays(overlays: list) -> None:
	"""
	Validate every overlay before any placement is computed.

	Args:
		overlays: ImageOverlay and TextOverlay entries.
	"""
	for index, overlay in enumerate(overlays):
		_check_fraction(index, "x", overlay.x)
		_check_fraction(index, "y", overlay.y)
		if isinstance(overlay, ImageOverlay):
			_check_fraction(index, "width", overlay.width)
			_check_fraction(index, "height", overlay.height)
			if overlay.clip not in CLIP_SHAPES:
				raise InvalidOverlaySpec(index, f"unknown clip shape {overlay.clip!r}")
			if not overlay.source_width > 0 or not overlay.source_height > 0:
				raise InvalidOverlaySpec(index, "source image must have positive dimensions")
		elif isinstance(overlay, TextOverlay):
			_check_fraction(index, "font_size_fraction", overlay.font_size_fraction)
			_check_fraction(index, "max_width_fraction", overlay.max_width_fraction)
			if not overlay.min_font_size >= 0:
				raise InvalidOverlaySpec(index, f"min_font_size={overlay.min_font_size} is negative")
		else:
			raise InvalidOverlaySpec(index, f"unsupported overlay type {type(overlay).__name__}")


#============================================
def fit_contain(surface: Size, template: Size) -> tuple[float, float, float, float]:
	"""
	Fit the template entirely inside the surface, centered.

	Args:
		surface: Drawing surface size.
		template: Template intrinsic size.

	Returns:
		Tuple of (x, y, width, height).
	"""
	template_aspect = template.width / template.height
	surface_aspect = surface.width / surface.height
	if template_aspect > surface_aspect:
		width = surface.width
		height = width / template_aspect
	else:
		height = surface.height
		width = height * template_aspect
	x = (surface.width - width) / 2.0
	y = (surface.height - height) / 2.0
	return (x, y, width, height)


#============================================
def fit_cover(
	box_width: float,
	box_height: float,
	source_width: float,
	source_height: float,
) -> tuple[float, float, float, float]:
	"""
	Scale a source to fill a box, cropping the overflow.

	Args:
		box_width: Box width.
		box_height: Box height.
		source_width: Source image width.
		source_height: Source image height.

	Returns:
		Tuple of (offset_x, offset_y, width, height) relative to the box origin.
	"""
	source_aspect = source_width / source_height
	if box_height <= 0:
		# degenerate slot, keep the width and let the clip hide it
		return (0.0, 0.0, box_width, box_width / source_aspect)
	box_aspect = box_width / box_height
	if source_aspect > box_aspect:
		height = box_height
		width = height * source_aspect
	else:
		width = box_width
		height = width / source_aspect
	offset_x = (box_width - width) / 2.0
	offset_y = (box_height - height) / 2.0
	return (offset_x, offset_y, width, height)


#============================================
def resolve_font_size(
	text: str,
	base_size: float,
	max_width: float,
	min_size: float,
	measure: MeasureFunc,
	bold: bool = False,
	font_path: str | None = None,
) -> tuple[float, bool]:
	"""
	Resolve a font size with a single proportional correction.

	Args:
		text: Text to fit.
		base_size: Unshrunk font size.
		max_width: Allowed rendered width.
		min_size: Absolute floor.
		measure: Text width measurement callable.
		bold: Bold flag passed to the measurement.
		font_path: Optional font file passed to the measurement.

	Returns:
		Tuple of (font size, clamped to floor flag).
	"""
	size = max(base_size, min_size)
	measured = measure(text, FontSpec(size=size, bold=bold, font_path=font_path))
	if measured <= max_width:
		return (size, False)
	target = size * (max_width / measured)
	if target < min_size:
		return (min_size, True)
	return (target, False)


#============================================
def resolve_font_size_stepped(
	text: str,
	base_size: float,
	max_width: float,
	min_size: float,
	measure: MeasureFunc,
	bold: bool = False,
	font_path: str | None = None,
) -> tuple[float, bool]:
	"""
	Resolve a font size by stepping down 2% of the base size at a time.

	The loop stops at 20% of the base size or after MAX_SHRINK_STEPS
	reductions, whichever comes first. The result is clamped to min_size.

	Args:
		text: Text to fit.
		base_size: Unshrunk font size.
		max_width: Allowed rendered width.
		min_size: Absolute floor.
		measure: Text width measurement callable.
		bold: Bold flag passed to the measurement.
		font_path: Optional font file passed to the measurement.

	Returns:
		Tuple of (font size, clamped to floor flag).
	"""
	size = max(base_size, min_size)
	step = size * SHRINK_STEP_FRACTION
	lower_bound = size * SHRINK_FLOOR_FRACTION
	measured = measure(text, FontSpec(size=size, bold=bold, font_path=font_path))
	steps = 0
	while measured > max_width and size > lower_bound and steps < MAX_SHRINK_STEPS:
		size -= step
		steps += 1
		measured = measure(text, FontSpec(size=size, bold=bold, font_path=font_path))
	if size < min_size:
		return (min_size, True)
	return (size, False)


#============================================
def place_image_overlay(
	index: int,
	overlay: ImageOverlay,
	fitted: tuple[float, float, float, float],
) -> ImagePlacement:
	"""
	Place an image overlay inside the fitted template box.

	Args:
		index: Overlay index.
		overlay: ImageOverlay spec.
		fitted: Fitted template box (x, y, width, height).

	Returns:
		ImagePlacement.
	"""
	fit_x, fit_y, fit_width, fit_height = fitted
	box_x = fit_x + overlay.x * fit_width
	box_y = fit_y + overlay.y * fit_height
	box_width = overlay.width * fit_width
	box_height = overlay.height * fit_height
	offset_x, offset_y, image_width, image_height = fit_cover(
		box_width,
		box_height,
		overlay.source_width,
		overlay.source_height,
	)
	return ImagePlacement(
		index=index,
		image_key=overlay.image_key,
		clip=overlay.clip,
		box_x=box_x,
		box_y=box_y,
		box_width=box_width,
		box_height=box_height,
		image_x=box_x + offset_x,
		image_y=box_y + offset_y,
		image_width=image_width,
		image_height=image_height,
	)


#============================================
def place_text_overlay(
	index: int,
	overlay: TextOverlay,
	surface: Size,
	fitted: tuple[float, float, float, float],
	measure: MeasureFunc,
	shrink_mode: str,
) -> TextPlacement:
	"""
	Place a text overlay and resolve its font size.

	Args:
		index: Overlay index.
		overlay: TextOverlay spec.
		surface: Surface size; font size and max width scale with its width.
		fitted: Fitted template box (x, y, width, height).
		measure: Text width measurement callable.
		shrink_mode: SHRINK_PROPORTIONAL or SHRINK_STEPPED.

	Returns:
		TextPlacement.
	"""
	fit_x, fit_y, fit_width, fit_height = fitted
	base_size = surface.width * overlay.font_size_fraction
	max_width = surface.width * overlay.max_width_fraction
	if shrink_mode == SHRINK_STEPPED:
		resolver = resolve_font_size_stepped
	else:
		resolver = resolve_font_size
	font_size, clamped = resolver(
		overlay.text,
		base_size,
		max_width,
		overlay.min_font_size,
		measure,
		bold=overlay.bold,
		font_path=overlay.font_path,
	)
	return TextPlacement(
		index=index,
		text=overlay.text,
		x=fit_x + overlay.x * fit_width,
		y=fit_y + overlay.y * fit_height,
		font_size=font_size,
		bold=overlay.bold,
		color=overlay.color,
		font_path=overlay.font_path,
		max_width=max_width,
		clamped=clamped,
	)


#============================================
def compute_draw_plan(
	surface: Size,
	template: Size,
	overlays: list,
	measure: MeasureFunc,
	shrink_mode: str = SHRINK_PROPORTIONAL,
) -> DrawPlan:
	"""
	Compute the draw plan for a template and its overlays.

	Primitives come back in overlay order and must be drawn in that
	order, after the template.

	Args:
		surface: Drawing surface size.
		template: Template intrinsic size.
		overlays: ImageOverlay and TextOverlay entries.
		measure: Text width measurement callable.
		shrink_mode: SHRINK_PROPORTIONAL or SHRINK_STEPPED.

	Returns:
		DrawPlan.
	"""
	validate_size(surface, "surface")
	validate_size(template, "template")
	validate_overlays(overlays)
	if shrink_mode not in SHRINK_MODES:
		raise ValueError(f"unknown shrink mode {shrink_mode!r}")

	fitted = fit_contain(surface, template)
	primitives: list = []
	for index, overlay in enumerate(overlays):
		if isinstance(overlay, ImageOverlay):
			primitives.append(place_image_overlay(index, overlay, fitted))
		else:
			primitives.append(
				place_text_overlay(index, overlay, surface, fitted, measure, shrink_mode)
			)
	return DrawPlan(
		surface=surface,
		template_x=fitted[0],
		template_y=fitted[1],
		template_width=fitted[2],
		template_height=fitted[3],
		primitives=primitives,
	)
