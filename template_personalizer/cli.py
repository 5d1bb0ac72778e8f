"""
CLI entry points for template personalization.
"""

# Standard Library
import argparse
import pathlib
import time

# local repo modules
import template_personalizer as tp
import template_personalizer.config
import template_personalizer.errors
import template_personalizer.export
import template_personalizer.generator
import template_personalizer.presets
import template_personalizer.render
import template_personalizer.share


PdfStampConfig = tp.config.PdfStampConfig
GeneratorPreset = tp.config.GeneratorPreset
PersonalizerError = tp.errors.PersonalizerError

PLATFORM_URLS = tp.config.PLATFORM_URLS
PDF_TEMPLATE_DPI = tp.config.PDF_TEMPLATE_DPI


#============================================
def build_preset(args: argparse.Namespace) -> GeneratorPreset:
	"""
	Build the generator preset from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		GeneratorPreset.
	"""
	if args.layout_path:
		preset = tp.presets.load_layout_file(pathlib.Path(args.layout_path), args.preset)
	else:
		preset = tp.presets.get_preset(args.preset)
	if args.template_path:
		preset.template_path = args.template_path
	if args.caption_path:
		preset.caption = pathlib.Path(args.caption_path).read_text(encoding="utf-8")
	return preset


#============================================
def build_stamp_config(args: argparse.Namespace) -> PdfStampConfig:
	"""
	Build the PDF stamp config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PdfStampConfig.
	"""
	return PdfStampConfig(
		x=args.stamp_x,
		y=args.stamp_y,
		font_size=args.stamp_font_size,
		color=args.stamp_color,
		font_path=args.stamp_font_path,
	)


#============================================
def add_stamp_arguments(parser: argparse.ArgumentParser) -> None:
	"""
	Add PDF stamp placement options to a subcommand parser.
	"""
	stamp_group = parser.add_argument_group("Name placement (points)")
	stamp_group.add_argument("-x", "--x", dest="stamp_x", type=float, default=81.0, help="X from the left edge.")
	stamp_group.add_argument("-y", "--y", dest="stamp_y", type=float, default=360.0, help="Y from the top edge.")
	stamp_group.add_argument("-s", "--font-size", dest="stamp_font_size", type=float, default=32.0, help="Font size.")
	stamp_group.add_argument("-c", "--color", dest="stamp_color", default="#000000", help="Hex text color.")
	stamp_group.add_argument("-F", "--font", dest="stamp_font_path", default=None, help="TTF font file.")


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list (defaults to sys.argv).

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Personalize certificate and profile templates.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	render_parser = subparsers.add_parser("render", help="Render a personalized PNG/PDF.")
	input_group = render_parser.add_argument_group("Input")
	input_group.add_argument("-p", "--preset", dest="preset", default="profile", choices=sorted(tp.presets.PRESETS), help="Generator preset.")
	input_group.add_argument("-l", "--layout", dest="layout_path", default=None, help="Layout JSON overriding the preset.")
	input_group.add_argument("-t", "--template", dest="template_path", default=None, help="Template image or PDF.")
	input_group.add_argument("-n", "--name", dest="user_name", required=True, help="Name to place on the template.")
	input_group.add_argument("-i", "--photo", dest="photo_path", default=None, help="User photo.")
	input_group.add_argument("--caption-file", dest="caption_path", default=None, help="Caption text file.")
	output_group = render_parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output-dir", dest="output_dir", default=".", help="Output directory.")
	output_group.add_argument("-f", "--format", dest="formats", nargs="+", choices=["png", "pdf"], default=["png"], help="Artifact formats.")
	output_group.add_argument("-P", "--preview", dest="preview_path", default=None, help="Also write a preview PNG here.")
	output_group.add_argument("--dpi", dest="dpi", type=int, default=PDF_TEMPLATE_DPI, help="Rasterization DPI for PDF templates.")
	share_group = render_parser.add_argument_group("Share")
	share_group.add_argument("-S", "--share", dest="platform", default=None, choices=sorted(PLATFORM_URLS), help="Share the PNG after export.")
	share_group.add_argument("-d", "--download-dir", dest="download_dir", default=None, help="Download directory for the share fallback.")

	share_parser = subparsers.add_parser("share", help="Share an existing PNG artifact.")
	share_parser.add_argument("artifact_path", help="PNG artifact to share.")
	share_parser.add_argument("-S", "--platform", dest="platform", required=True, choices=sorted(PLATFORM_URLS), help="Target platform.")
	share_parser.add_argument("--caption-file", dest="caption_path", default=None, help="Caption text file.")
	share_parser.add_argument("-d", "--download-dir", dest="download_dir", default=None, help="Download directory for the share fallback.")

	stamp_parser = subparsers.add_parser("stamp", help="Stamp a name onto a PDF template.")
	stamp_parser.add_argument("-t", "--template", dest="template_path", required=True, help="Template PDF.")
	stamp_parser.add_argument("-n", "--name", dest="user_name", required=True, help="Name to stamp.")
	stamp_parser.add_argument("-o", "--output-dir", dest="output_dir", default=".", help="Output directory.")
	stamp_parser.add_argument("--suffix", dest="suffix", default="certificate", help="Filename suffix.")
	add_stamp_arguments(stamp_parser)

	batch_parser = subparsers.add_parser("batch", help="Stamp every roster name onto its group template.")
	batch_parser.add_argument("roster_path", help="Roster JSON file.")
	batch_parser.add_argument("-o", "--output-dir", dest="output_dir", default=".", help="Output directory.")
	add_stamp_arguments(batch_parser)

	args = parser.parse_args(argv)
	return args


#============================================
def share_artifact(
	platform: str,
	png_bytes: bytes,
	caption: str,
	filename: str,
	download_dir: pathlib.Path,
	title: str = tp.config.DEFAULT_SHARE_TITLE,
) -> tp.share.ShareResult:
	"""
	Share PNG bytes with the desktop capabilities.

	Returns:
		ShareResult.
	"""
	request = tp.share.build_share_request(platform, png_bytes, caption, filename, title)
	capabilities = tp.share.DesktopShareCapabilities(download_dir)
	dispatcher = tp.share.ShareDispatcher(verbose=True)
	dispatcher.subscribe(lambda status: print(f"Share status: {status}"))
	result = dispatcher.dispatch(request, capabilities)
	print(result.message)
	return result


#============================================
def run_render(args: argparse.Namespace) -> int:
	"""
	Render preview and artifacts for one user.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Exit code.
	"""
	start_time = time.perf_counter()
	preset = build_preset(args)
	print(f"Preset: {preset.key}")
	print(f"Template: {preset.template_path}")
	template_image = tp.render.load_template(pathlib.Path(preset.template_path), args.dpi)
	print(f"Template size: {template_image.width}x{template_image.height}")
	photo = None
	if args.photo_path:
		photo = tp.render.load_photo(pathlib.Path(args.photo_path))
		print(f"Photo size: {photo.width}x{photo.height}")

	if args.preview_path:
		preview, _plan = tp.generator.render_preview(preset, template_image, args.user_name, photo)
		preview_path = pathlib.Path(args.preview_path)
		preview_path.parent.mkdir(parents=True, exist_ok=True)
		preview.save(preview_path, format="PNG")
		print(f"Preview written: {preview_path}")

	image, plan = tp.generator.render_export(preset, template_image, args.user_name, photo)
	for primitive in plan.primitives:
		if isinstance(primitive, tp.config.TextPlacement):
			print(f"Name font size: {primitive.font_size:.1f}px")
			if primitive.clamped:
				print("Name hit the minimum font size and may overflow")
	output_dir = pathlib.Path(args.output_dir)
	written = tp.generator.export_artifacts(preset, image, args.user_name, output_dir, args.formats)
	for path in written:
		print(f"Artifact written: {path}")

	exit_code = 0
	if args.platform:
		png_bytes = tp.export.encode_png(image)
		filename = tp.export.build_filename(args.user_name, preset.filename_suffix, "png")
		download_dir = pathlib.Path(args.download_dir) if args.download_dir else output_dir
		result = share_artifact(args.platform, png_bytes, preset.caption, filename, download_dir, preset.share_title)
		if result.outcome == tp.config.OUTCOME_FAILED:
			exit_code = 1

	print(f"Timing: total={time.perf_counter() - start_time:.2f}s")
	return exit_code


#============================================
def run_share(args: argparse.Namespace) -> int:
	"""
	Share an existing artifact.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Exit code.
	"""
	artifact_path = pathlib.Path(args.artifact_path)
	png_bytes = artifact_path.read_bytes()
	caption = tp.presets.DEFAULT_CAPTION
	if args.caption_path:
		caption = pathlib.Path(args.caption_path).read_text(encoding="utf-8")
	download_dir = pathlib.Path(args.download_dir) if args.download_dir else artifact_path.parent
	result = share_artifact(args.platform, png_bytes, caption, artifact_path.name, download_dir)
	if result.outcome == tp.config.OUTCOME_FAILED:
		return 1
	return 0


#============================================
def run_stamp(args: argparse.Namespace) -> int:
	"""
	Stamp one name onto a PDF template.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Exit code.
	"""
	config = build_stamp_config(args)
	name = tp.export.to_title_case(args.user_name.strip())
	print(f"Stamping {name!r} onto {args.template_path}")
	data = tp.export.stamp_pdf_template(pathlib.Path(args.template_path), name, config)
	filename = tp.export.build_filename(args.user_name, args.suffix, "pdf")
	path = tp.export.write_artifact(pathlib.Path(args.output_dir), filename, data)
	print(f"Certificate written: {path}")
	return 0


#============================================
def run_batch(args: argparse.Namespace) -> int:
	"""
	Stamp every roster name.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Exit code.
	"""
	start_time = time.perf_counter()
	groups = tp.export.load_roster(pathlib.Path(args.roster_path))
	print(f"Roster groups: {len(groups)}")
	config = build_stamp_config(args)
	result = tp.export.run_batch(groups, pathlib.Path(args.output_dir), config, verbose=True)
	print(f"Output folders: {', '.join(result.output_dirs)}")
	print(f"Timing: total={time.perf_counter() - start_time:.2f}s")
	if result.failed > 0:
		return 1
	return 0


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	runners = {
		"render": run_render,
		"share": run_share,
		"stamp": run_stamp,
		"batch": run_batch,
	}
	try:
		return runners[args.command](args)
	except (PersonalizerError, ValueError, OSError) as error:
		print(f"Error: {error}")
		return 1
