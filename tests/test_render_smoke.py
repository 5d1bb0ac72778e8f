import pathlib

import PIL.Image
import pytest
import reportlab.lib.pagesizes
import reportlab.pdfgen.canvas

import template_personalizer as tp
import template_personalizer.config
import template_personalizer.generator
import template_personalizer.layout
import template_personalizer.presets
import template_personalizer.render

Size = tp.config.Size
INK_THRESHOLD = 60


#============================================
def _count_close_pixels(image: PIL.Image.Image, color: tuple[int, int, int], threshold: int) -> int:
	"""
	Count pixels within a per-channel distance of a color.

	Args:
		image: RGB image.
		color: Target color.
		threshold: Maximum channel distance.

	Returns:
		Pixel count.
	"""
	count = 0
	for pixel in image.getdata():
		if all(abs(pixel[channel] - color[channel]) <= threshold for channel in range(3)):
			count += 1
	return count


#============================================
def test_circle_mask_clears_corners() -> None:
	mask = tp.render.build_clip_mask(tp.config.CLIP_CIRCLE, 100, 160)
	assert mask.size == (100, 160)
	assert mask.getpixel((50, 80)) == 255
	assert mask.getpixel((0, 0)) == 0
	assert mask.getpixel((99, 159)) == 0
	# diameter follows the width, so the top band stays clear
	assert mask.getpixel((50, 20)) == 0
	rectangle = tp.render.build_clip_mask(tp.config.CLIP_RECTANGLE, 10, 10)
	assert rectangle.getextrema() == (255, 255)


#============================================
def test_circle_photo_rendered_inside_clip(template_image, photo_image, measure) -> None:
	overlay = tp.config.ImageOverlay(
		x=0.25,
		y=0.1,
		width=0.5,
		height=0.8,
		source_width=photo_image.width,
		source_height=photo_image.height,
		clip=tp.config.CLIP_CIRCLE,
	)
	plan = tp.layout.compute_draw_plan(Size(400, 300), Size(400, 300), [overlay], measure)
	image = tp.render.rasterize_plan(plan, template_image, {"photo": photo_image})
	placement = plan.primitives[0]
	center = (int(placement.circle_center[0]), int(placement.circle_center[1]))
	assert image.getpixel(center) == (220, 10, 10)
	# box corner lies outside the circle and keeps the template color
	corner = (int(placement.box_x) + 1, int(placement.box_y) + 1)
	assert image.getpixel(corner) == (20, 40, 200)


#============================================
def test_rectangle_photo_fills_box(template_image, photo_image, measure) -> None:
	overlay = tp.config.ImageOverlay(
		x=0.1,
		y=0.1,
		width=0.3,
		height=0.5,
		source_width=photo_image.width,
		source_height=photo_image.height,
	)
	plan = tp.layout.compute_draw_plan(Size(400, 300), Size(400, 300), [overlay], measure)
	image = tp.render.rasterize_plan(plan, template_image, {"photo": photo_image})
	placement = plan.primitives[0]
	box = (
		int(placement.box_x) + 1,
		int(placement.box_y) + 1,
		int(placement.box_x + placement.box_width) - 1,
		int(placement.box_y + placement.box_height) - 1,
	)
	region = image.crop(box)
	assert _count_close_pixels(region, (220, 10, 10), 5) == region.width * region.height
	# outside the box the template is untouched
	assert image.getpixel((int(placement.box_x + placement.box_width) + 5, 5)) == (20, 40, 200)


#============================================
def test_contain_fit_leaves_background_bands(template_image, measure) -> None:
	plan = tp.layout.compute_draw_plan(Size(400, 500), Size(400, 300), [], measure)
	image = tp.render.rasterize_plan(plan, template_image, {})
	assert image.size == (400, 500)
	assert image.getpixel((200, 10)) == (255, 255, 255)
	assert image.getpixel((200, 250)) == (20, 40, 200)


#============================================
def test_text_draws_ink_near_anchor(template_image) -> None:
	overlay = tp.config.TextOverlay(
		x=0.5,
		y=0.5,
		text="ADA",
		font_size_fraction=0.1,
		max_width_fraction=0.8,
		bold=True,
		color="#FFFFFF",
	)
	plan = tp.layout.compute_draw_plan(
		Size(400, 300),
		Size(400, 300),
		[overlay],
		tp.render.measure_text_width,
	)
	image = tp.render.rasterize_plan(plan, template_image, {})
	region = image.crop((100, 100, 300, 200))
	assert _count_close_pixels(region, (255, 255, 255), INK_THRESHOLD) > 20
	# no ink far from the anchor
	assert _count_close_pixels(image.crop((0, 0, 60, 60)), (255, 255, 255), INK_THRESHOLD) == 0


#============================================
def test_measure_text_width_grows_with_size() -> None:
	small = tp.render.measure_text_width("Ada Lovelace", tp.config.FontSpec(size=12))
	large = tp.render.measure_text_width("Ada Lovelace", tp.config.FontSpec(size=48))
	assert tp.render.measure_text_width("", tp.config.FontSpec(size=48)) == 0.0
	assert 0 < small < large


#============================================
def test_load_template_from_pdf(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "template.pdf"
	page_size = reportlab.lib.pagesizes.landscape(reportlab.lib.pagesizes.A4)
	pdf = reportlab.pdfgen.canvas.Canvas(str(path), pagesize=page_size)
	pdf.setFillColorRGB(0, 0, 0)
	pdf.rect(0, 0, page_size[0] / 2.0, page_size[1], stroke=0, fill=1)
	pdf.showPage()
	pdf.save()
	image = tp.render.load_template(path, dpi=72)
	assert image.mode == "RGB"
	assert image.width > image.height
	assert image.width == pytest.approx(page_size[0], abs=2)
	assert image.getpixel((10, 10)) == (0, 0, 0)
	assert image.getpixel((image.width - 10, 10)) == (255, 255, 255)


#============================================
def test_load_template_missing(tmp_path: pathlib.Path) -> None:
	with pytest.raises(FileNotFoundError):
		tp.render.load_template(tmp_path / "missing.jpg")


#============================================
def test_load_photo_rejects_non_image(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "photo.jpg"
	path.write_bytes(b"definitely not a jpeg")
	with pytest.raises(ValueError):
		tp.render.load_photo(path)


#============================================
def test_load_photo_reads_rgb(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "photo.png"
	PIL.Image.new("RGBA", (30, 20), (1, 2, 3, 255)).save(path)
	photo = tp.render.load_photo(path)
	assert photo.mode == "RGB"
	assert photo.size == (30, 20)


#============================================
def test_profile_export_doubles_template(template_image, photo_image) -> None:
	preset = tp.presets.get_preset("profile")
	image, plan = tp.generator.render_export(preset, template_image, "ada lovelace", photo_image)
	assert image.size == (800, 600)
	assert len(plan.primitives) == 2
	assert isinstance(plan.primitives[0], tp.config.ImagePlacement)
	text = plan.primitives[1]
	assert text.text == "ADA LOVELACE"
	assert text.font_size >= preset.name_slot.export_min_font_size


#============================================
def test_preview_shows_partial_state(template_image) -> None:
	preset = tp.presets.get_preset("profile")
	image, plan = tp.generator.render_preview(preset, template_image)
	assert image.size == (600, 800)
	assert plan.primitives == []


#============================================
def test_export_requires_inputs(template_image, photo_image) -> None:
	preset = tp.presets.get_preset("profile")
	with pytest.raises(ValueError, match="name"):
		tp.generator.render_export(preset, template_image, "   ", photo_image)
	with pytest.raises(ValueError, match="photo"):
		tp.generator.render_export(preset, template_image, "Ada", None)
	certificate = tp.presets.get_preset("certificate")
	image, plan = tp.generator.render_export(certificate, template_image, "ada lovelace")
	assert plan.primitives[0].text == "Ada Lovelace"


#============================================
def test_export_artifacts_writes_png_and_pdf(tmp_path: pathlib.Path, template_image) -> None:
	preset = tp.presets.get_preset("certificate")
	image, _plan = tp.generator.render_export(preset, template_image, "Ada Lovelace")
	written = tp.generator.export_artifacts(preset, image, "Ada Lovelace", tmp_path, ["png", "pdf"])
	assert [path.name for path in written] == ["Ada_Lovelace_Certificate.png", "Ada_Lovelace_Certificate.pdf"]
	assert written[0].read_bytes().startswith(b"\x89PNG")
	assert written[1].read_bytes().startswith(b"%PDF")


#============================================
def test_font_cache_is_bounded() -> None:
	"""
	Measuring across many sizes never grows the font cache past its limit.
	"""
	tp.render._load_font.cache_clear()
	for size in range(8, 8 + tp.config.FONT_CACHE_SIZE * 2):
		tp.render.measure_text_width("Ada", tp.config.FontSpec(size=size))
	info = tp.render._load_font.cache_info()
	assert info.maxsize == tp.config.FONT_CACHE_SIZE
	assert info.currsize <= tp.config.FONT_CACHE_SIZE
	first = tp.render.load_font(tp.config.FontSpec(size=30.2))
	assert tp.render.load_font(tp.config.FontSpec(size=29.8)) is first
