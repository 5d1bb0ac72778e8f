"""
Preview and export pipeline for a generator preset.
"""

# Standard Library
import pathlib

# PIP3 modules
import PIL.Image

# local repo modules
import template_personalizer as tp
import template_personalizer.config
import template_personalizer.export
import template_personalizer.layout
import template_personalizer.render


GeneratorPreset = tp.config.GeneratorPreset
ImageOverlay = tp.config.ImageOverlay
TextOverlay = tp.config.TextOverlay
Size = tp.config.Size
DrawPlan = tp.config.DrawPlan

TEXT_TRANSFORM_UPPER = tp.config.TEXT_TRANSFORM_UPPER
TEXT_TRANSFORM_TITLE = tp.config.TEXT_TRANSFORM_TITLE
PHOTO_KEY = "photo"


#============================================
def apply_text_transform(name: str, transform: str) -> str:
	"""
	Apply a preset text transform to a user name.

	Args:
		name: User name as typed.
		transform: Text transform key.

	Returns:
		Transformed name.
	"""
	if transform == TEXT_TRANSFORM_UPPER:
		return name.upper()
	if transform == TEXT_TRANSFORM_TITLE:
		return tp.export.to_title_case(name)
	return name


#============================================
def check_inputs(preset: GeneratorPreset, user_name: str, photo: PIL.Image.Image | None) -> None:
	"""
	Ensure a final render has everything the preset needs.
	"""
	if not user_name.strip():
		raise ValueError("Please enter your name.")
	if preset.photo_slot is not None and photo is None:
		raise ValueError("Please upload a photo.")


#============================================
def build_overlays(
	preset: GeneratorPreset,
	user_name: str,
	photo_size: tuple[int, int] | None,
	high_res: bool,
) -> list:
	"""
	Build overlay specs for a preset, photo first so the name draws on top.

	Missing inputs are skipped, which lets a preview show partial state.

	Args:
		preset: Generator preset.
		user_name: User name as typed.
		photo_size: Photo (width, height), or None when no photo.
		high_res: Use the export font floor.

	Returns:
		List of overlays.
	"""
	overlays: list = []
	slot = preset.photo_slot
	if slot is not None and photo_size is not None:
		overlays.append(
			ImageOverlay(
				x=slot.x,
				y=slot.y,
				width=slot.width,
				height=slot.height,
				source_width=photo_size[0],
				source_height=photo_size[1],
				clip=slot.clip,
				image_key=PHOTO_KEY,
			)
		)
	name_slot = preset.name_slot
	text = apply_text_transform(user_name.strip(), name_slot.text_transform)
	if text:
		min_size = name_slot.export_min_font_size if high_res else name_slot.min_font_size
		overlays.append(
			TextOverlay(
				x=name_slot.x,
				y=name_slot.y,
				text=text,
				font_size_fraction=name_slot.font_size_fraction,
				max_width_fraction=name_slot.max_width_fraction,
				min_font_size=min_size,
				bold=name_slot.bold,
				color=name_slot.color,
				font_path=name_slot.font_path,
			)
		)
	return overlays


#============================================
def render_surface(
	preset: GeneratorPreset,
	template_image: PIL.Image.Image,
	surface: Size,
	user_name: str,
	photo: PIL.Image.Image | None,
	high_res: bool,
) -> tuple[PIL.Image.Image, DrawPlan]:
	"""
	Lay out and rasterize a preset onto a surface.

	Args:
		preset: Generator preset.
		template_image: Template image.
		surface: Surface size.
		user_name: User name as typed.
		photo: Optional user photo.
		high_res: Use the export font floor.

	Returns:
		Tuple of (image, plan).
	"""
	photo_size = photo.size if photo is not None else None
	overlays = build_overlays(preset, user_name, photo_size, high_res)
	plan = tp.layout.compute_draw_plan(
		surface,
		Size(template_image.width, template_image.height),
		overlays,
		tp.render.measure_text_width,
		shrink_mode=preset.shrink_mode,
	)
	images: dict[str, PIL.Image.Image] = {}
	if photo is not None:
		images[PHOTO_KEY] = photo
	image = tp.render.rasterize_plan(plan, template_image, images)
	return (image, plan)


#============================================
def render_preview(
	preset: GeneratorPreset,
	template_image: PIL.Image.Image,
	user_name: str = "",
	photo: PIL.Image.Image | None = None,
	surface: Size | None = None,
) -> tuple[PIL.Image.Image, DrawPlan]:
	"""
	Render a preview at the preset's preview size.

	Returns:
		Tuple of (image, plan).
	"""
	if surface is None:
		surface = Size(preset.preview_width, preset.preview_height)
	return render_surface(preset, template_image, surface, user_name, photo, high_res=False)


#============================================
def render_export(
	preset: GeneratorPreset,
	template_image: PIL.Image.Image,
	user_name: str,
	photo: PIL.Image.Image | None = None,
) -> tuple[PIL.Image.Image, DrawPlan]:
	"""
	Render the high-resolution artifact at template size times export scale.

	Returns:
		Tuple of (image, plan).
	"""
	check_inputs(preset, user_name, photo)
	surface = Size(
		template_image.width * preset.export_scale,
		template_image.height * preset.export_scale,
	)
	return render_surface(preset, template_image, surface, user_name, photo, high_res=True)


#============================================
def export_artifacts(
	preset: GeneratorPreset,
	image: PIL.Image.Image,
	user_name: str,
	output_dir: pathlib.Path,
	formats: list[str],
) -> list[pathlib.Path]:
	"""
	Write the rendered artifact as PNG and/or PDF.

	Args:
		preset: Generator preset (for the filename suffix).
		image: Rendered high-resolution image.
		user_name: User name as typed.
		output_dir: Output directory.
		formats: Any of "png", "pdf".

	Returns:
		Written paths, in format order.
	"""
	png_bytes = tp.export.encode_png(image)
	written: list[pathlib.Path] = []
	for fmt in formats:
		filename = tp.export.build_filename(user_name, preset.filename_suffix, fmt)
		if fmt == "png":
			data = png_bytes
		elif fmt == "pdf":
			data = tp.export.embed_png_in_pdf(png_bytes)
		else:
			raise ValueError(f"Unknown export format {fmt!r}")
		written.append(tp.export.write_artifact(output_dir, filename, data))
	return written
