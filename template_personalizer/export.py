"""
Artifact export: filenames, PNG/PDF encoding and PDF template stamping.
"""

# Standard Library
import io
import json
import pathlib
import re

# PIP3 modules
import PIL.Image
import pypdf
import pypdf.errors
import reportlab.lib.pagesizes
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts
import reportlab.pdfgen.canvas

# local repo modules
import template_personalizer as tp
import template_personalizer.config


PdfStampConfig = tp.config.PdfStampConfig
RosterGroup = tp.config.RosterGroup
BatchResult = tp.config.BatchResult

PDF_FALLBACK_FONT = tp.config.PDF_FALLBACK_FONT
PDF_CUSTOM_FONT_NAME = tp.config.PDF_CUSTOM_FONT_NAME
PROGRESS_BAR_WIDTH = tp.config.PROGRESS_BAR_WIDTH
PROGRESS_UPDATE_EVERY = tp.config.PROGRESS_UPDATE_EVERY


#============================================
def sanitize_user_name(name: str) -> str:
	"""
	Replace whitespace runs and path separators with underscores for use
	in filenames. Leading dots are dropped so the result is never hidden
	or a parent directory reference.

	Args:
		name: User name.

	Returns:
		Sanitized name.
	"""
	cleaned = re.sub(r"[\s/\\\x00]+", "_", name.strip())
	return cleaned.lstrip(".")


#============================================
def build_filename(name: str, suffix: str, extension: str) -> str:
	"""
	Build an artifact filename like "Ada_Lovelace_Certificate.png".

	Args:
		name: User name.
		suffix: Artifact suffix.
		extension: File extension without the dot.

	Returns:
		Filename.
	"""
	return f"{sanitize_user_name(name)}_{suffix}.{extension.lstrip('.')}"


#============================================
def to_title_case(value: str) -> str:
	"""
	Lower-case a name, then capitalize the first letter of each word.
	"""
	return re.sub(r"\b\w", lambda match: match.group(0).upper(), value.lower())


#============================================
def parse_hex_color_float(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats for reportlab.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		return (0.0, 0.0, 0.0)
	red = int(value[1:3], 16) / 255.0
	green = int(value[3:5], 16) / 255.0
	blue = int(value[5:7], 16) / 255.0
	return (red, green, blue)


#============================================
def encode_png(image: PIL.Image.Image) -> bytes:
	"""
	Encode an image as lossless PNG bytes.
	"""
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


#============================================
def compute_page_placement(
	image_width: float,
	image_height: float,
) -> tuple[tuple[float, float], tuple[float, float, float, float]]:
	"""
	Choose an A4 orientation and fit an image onto it, centered.

	Args:
		image_width: Image width.
		image_height: Image height.

	Returns:
		Tuple of (page size, (x, y, width, height)).
	"""
	if image_width > image_height:
		page_size = reportlab.lib.pagesizes.landscape(reportlab.lib.pagesizes.A4)
	else:
		page_size = reportlab.lib.pagesizes.portrait(reportlab.lib.pagesizes.A4)
	page_width, page_height = page_size
	ratio = min(page_width / image_width, page_height / image_height)
	scaled_width = image_width * ratio
	scaled_height = image_height * ratio
	x = (page_width - scaled_width) / 2.0
	y = (page_height - scaled_height) / 2.0
	return (page_size, (x, y, scaled_width, scaled_height))


#============================================
def embed_png_in_pdf(png_bytes: bytes) -> bytes:
	"""
	Embed a rendered raster on a single A4 page.

	Args:
		png_bytes: PNG artifact.

	Returns:
		PDF bytes.
	"""
	image = PIL.Image.open(io.BytesIO(png_bytes))
	image.load()
	page_size, placement = compute_page_placement(image.width, image.height)
	x, y, width, height = placement
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=page_size)
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(image),
		x,
		y,
		width=width,
		height=height,
		mask=None,
		preserveAspectRatio=False,
		anchor="sw",
	)
	pdf.showPage()
	pdf.save()
	return buffer.getvalue()


#============================================
def register_stamp_font(font_path: str | None) -> str:
	"""
	Register a TTF font for stamping, or fall back to Helvetica-Bold.

	Args:
		font_path: Optional TTF path.

	Returns:
		ReportLab font name.
	"""
	if not font_path:
		return PDF_FALLBACK_FONT
	font_name = f"{PDF_CUSTOM_FONT_NAME}-{pathlib.Path(font_path).stem}"
	if font_name in reportlab.pdfbase.pdfmetrics.getRegisteredFontNames():
		return font_name
	try:
		font = reportlab.pdfbase.ttfonts.TTFont(font_name, font_path)
	except (OSError, reportlab.pdfbase.ttfonts.TTFError) as error:
		print(f"Font load failed ({error}); using {PDF_FALLBACK_FONT}")
		return PDF_FALLBACK_FONT
	reportlab.pdfbase.pdfmetrics.registerFont(font)
	return font_name


#============================================
def stamp_pdf_template(
	template_path: pathlib.Path,
	text: str,
	config: PdfStampConfig,
) -> bytes:
	"""
	Draw text onto the first page of a PDF template.

	Coordinates are in points; config.y is measured from the top edge.

	Args:
		template_path: Template PDF path.
		text: Text to stamp.
		config: Stamp configuration.

	Returns:
		PDF bytes with every template page, page one stamped.
	"""
	reader = pypdf.PdfReader(str(template_path))
	if not reader.pages:
		raise ValueError(f"Template PDF has no pages: {template_path}")
	first_page = reader.pages[0]
	page_width = float(first_page.mediabox.width)
	page_height = float(first_page.mediabox.height)

	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
	font_name = register_stamp_font(config.font_path)
	pdf.setFont(font_name, config.font_size)
	color = parse_hex_color_float(config.color)
	pdf.setFillColorRGB(color[0], color[1], color[2])
	pdf.drawString(config.x, page_height - config.y, text)
	pdf.save()
	buffer.seek(0)

	overlay = pypdf.PdfReader(buffer).pages[0]
	first_page.merge_page(overlay)
	writer = pypdf.PdfWriter()
	for page in reader.pages:
		writer.add_page(page)
	out_buffer = io.BytesIO()
	writer.write(out_buffer)
	return out_buffer.getvalue()


#============================================
def write_artifact(output_dir: pathlib.Path, filename: str, data: bytes) -> pathlib.Path:
	"""
	Write artifact bytes into a directory.

	Args:
		output_dir: Output directory, created when missing.
		filename: File name.
		data: Artifact bytes.

	Returns:
		Written path.
	"""
	if filename in ("", ".", "..") or "/" in filename or "\\" in filename:
		raise ValueError(f"Artifact filename must be a bare file name, got {filename!r}")
	output_dir = pathlib.Path(output_dir)
	output_dir.mkdir(parents=True, exist_ok=True)
	path = output_dir / filename
	path.write_bytes(data)
	return path


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def load_roster(path: pathlib.Path) -> list[RosterGroup]:
	"""
	Load a roster JSON file.

	The file maps group names to a template PDF and a list of names:
	{"groups": {"legal": {"template": "legal.pdf", "names": ["..."]}}}.
	Relative template paths resolve against the roster file.

	Args:
		path: Roster JSON path.

	Returns:
		List of RosterGroup entries in file order.
	"""
	path = pathlib.Path(path)
	with path.open("r", encoding="utf-8") as handle:
		data = json.load(handle)
	groups_data = data.get("groups") if isinstance(data, dict) else None
	if not isinstance(groups_data, dict):
		raise ValueError(f"Roster must contain a 'groups' object: {path}")
	groups: list[RosterGroup] = []
	for group_name, entry in groups_data.items():
		if not isinstance(entry, dict) or "template" not in entry:
			raise ValueError(f"Roster group {group_name!r} needs a 'template'")
		template_path = pathlib.Path(entry["template"])
		if not template_path.is_absolute():
			template_path = path.parent / template_path
		names = [str(name) for name in entry.get("names", [])]
		groups.append(RosterGroup(name=group_name, template_path=str(template_path), names=names))
	return groups


#============================================
def run_batch(
	groups: list[RosterGroup],
	output_dir: pathlib.Path,
	config: PdfStampConfig,
	verbose: bool = False,
) -> BatchResult:
	"""
	Stamp every roster name onto its group's template PDF.

	Output goes to output_dir/certificates_{group}/{name}_{group}_certificate.pdf.
	A failure for one name is reported and counted; the run continues.

	Args:
		groups: Roster groups.
		output_dir: Base output directory.
		config: Stamp configuration.
		verbose: Print progress.

	Returns:
		BatchResult.
	"""
	generated = 0
	failed = 0
	output_dirs: list[str] = []
	failure_messages: list[str] = []
	total = sum(len(group.names) for group in groups)
	done = 0
	if verbose and total > 0:
		print_progress("Certificates", 0, total)
	for group in groups:
		group_key = sanitize_user_name(group.name)
		group_dir = pathlib.Path(output_dir) / f"certificates_{group_key}"
		output_dirs.append(str(group_dir))
		for name in group.names:
			done += 1
			filename = build_filename(name, f"{group_key}_certificate", "pdf")
			try:
				data = stamp_pdf_template(
					pathlib.Path(group.template_path),
					to_title_case(name),
					config,
				)
				write_artifact(group_dir, filename, data)
				generated += 1
			except (OSError, ValueError, pypdf.errors.PyPdfError) as error:
				failed += 1
				failure_messages.append(f"Failed {name} ({group.name}): {error}")
			if verbose and (done % PROGRESS_UPDATE_EVERY == 0 or done == total):
				print_progress("Certificates", done, total)
	if verbose:
		if total > 0:
			print()
		for message in failure_messages:
			print(message)
		print(f"Certificates generated: {generated}")
		print(f"Certificates failed: {failed}")
	return BatchResult(generated=generated, failed=failed, output_dirs=output_dirs)
