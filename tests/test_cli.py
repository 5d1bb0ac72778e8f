import json
import pathlib

import PIL.Image
import pypdf
import pytest
import reportlab.lib.pagesizes
import reportlab.pdfgen.canvas

import template_personalizer as tp
import template_personalizer.cli
import template_personalizer.config
import template_personalizer.share


#============================================
def write_images(tmp_path: pathlib.Path) -> tuple[pathlib.Path, pathlib.Path]:
	"""
	Write a template and a photo for CLI runs.

	Args:
		tmp_path: Pytest temporary directory.

	Returns:
		Tuple of (template path, photo path).
	"""
	template_path = tmp_path / "template.png"
	PIL.Image.new("RGB", (300, 400), (10, 10, 80)).save(template_path)
	photo_path = tmp_path / "photo.jpg"
	PIL.Image.new("RGB", (120, 160), (200, 180, 160)).save(photo_path)
	return (template_path, photo_path)


#============================================
def write_template_pdf(path: pathlib.Path) -> pathlib.Path:
	pdf = reportlab.pdfgen.canvas.Canvas(str(path), pagesize=reportlab.lib.pagesizes.A4)
	pdf.drawString(72, 72, "Mentorship Certificate")
	pdf.showPage()
	pdf.save()
	return path


#============================================
def test_parse_args_render_defaults() -> None:
	args = tp.cli.parse_args(["render", "--name", "Ada"])
	assert args.command == "render"
	assert args.preset == "profile"
	assert args.formats == ["png"]
	assert args.platform is None
	assert args.output_dir == "."


#============================================
def test_render_writes_artifacts(tmp_path: pathlib.Path, capsys) -> None:
	template_path, photo_path = write_images(tmp_path)
	out_dir = tmp_path / "out"
	preview_path = tmp_path / "preview.png"
	exit_code = tp.cli.main([
		"render",
		"--template", str(template_path),
		"--name", "Ada Lovelace",
		"--photo", str(photo_path),
		"--output-dir", str(out_dir),
		"--format", "png", "pdf",
		"--preview", str(preview_path),
	])
	assert exit_code == 0
	png_path = out_dir / "Ada_Lovelace_GEPA_Profile.png"
	with PIL.Image.open(png_path) as image:
		assert image.size == (600, 800)
	assert len(pypdf.PdfReader(str(out_dir / "Ada_Lovelace_GEPA_Profile.pdf")).pages) == 1
	with PIL.Image.open(preview_path) as preview:
		assert preview.size == (600, 800)
	assert "Artifact written" in capsys.readouterr().out


#============================================
def test_render_with_layout_file(tmp_path: pathlib.Path) -> None:
	template_path, _photo_path = write_images(tmp_path)
	layout_path = tmp_path / "layout.json"
	layout_path.write_text(
		json.dumps({
			"preset": "profile",
			"template_path": template_path.name,
			"photo_slot": None,
			"filename_suffix": "Badge",
			"export_scale": 1,
			"name_slot": {"color": "#FF0000"},
		}),
		encoding="utf-8",
	)
	exit_code = tp.cli.main([
		"render",
		"--layout", str(layout_path),
		"--name", "Grace Hopper",
		"--output-dir", str(tmp_path),
	])
	assert exit_code == 0
	with PIL.Image.open(tmp_path / "Grace_Hopper_Badge.png") as image:
		assert image.size == (300, 400)


#============================================
def test_render_reports_missing_inputs(tmp_path: pathlib.Path, capsys) -> None:
	template_path, _photo_path = write_images(tmp_path)
	exit_code = tp.cli.main(["render", "--template", str(template_path), "--name", "Ada", "--output-dir", str(tmp_path)])
	assert exit_code == 1
	assert "Please upload a photo." in capsys.readouterr().out
	exit_code = tp.cli.main(["render", "--template", str(tmp_path / "missing.png"), "--name", "Ada"])
	assert exit_code == 1


#============================================
def test_render_and_share_downloads(tmp_path: pathlib.Path, monkeypatch, capsys) -> None:
	monkeypatch.setattr(tp.share, "_run_clipboard_command", lambda command, payload: False)
	template_path, _photo_path = write_images(tmp_path)
	exit_code = tp.cli.main([
		"render",
		"--preset", "certificate",
		"--template", str(template_path),
		"--name", "ada lovelace",
		"--output-dir", str(tmp_path / "out"),
		"--share", "instagram",
		"--download-dir", str(tmp_path / "downloads"),
	])
	assert exit_code == 0
	assert (tmp_path / "downloads" / "ada_lovelace_Certificate.png").is_file()
	output = capsys.readouterr().out
	assert "Share status: sharing" in output
	assert "Share status: done" in output
	assert "Image downloaded for Instagram." in output


#============================================
def test_share_existing_artifact(tmp_path: pathlib.Path, monkeypatch) -> None:
	monkeypatch.setattr(tp.share, "_run_clipboard_command", lambda command, payload: False)
	artifact = tmp_path / "card.png"
	PIL.Image.new("RGB", (10, 10)).save(artifact)
	exit_code = tp.cli.main(["share", str(artifact), "--platform", "instagram", "--download-dir", str(tmp_path / "dl")])
	assert exit_code == 0
	assert (tmp_path / "dl" / "card.png").read_bytes() == artifact.read_bytes()


#============================================
def test_stamp_command(tmp_path: pathlib.Path) -> None:
	template = write_template_pdf(tmp_path / "mentor.pdf")
	exit_code = tp.cli.main([
		"stamp",
		"--template", str(template),
		"--name", "ada LOVELACE",
		"--output-dir", str(tmp_path),
	])
	assert exit_code == 0
	text = pypdf.PdfReader(str(tmp_path / "ada_LOVELACE_certificate.pdf")).pages[0].extract_text()
	assert "Ada Lovelace" in text


#============================================
def test_batch_command(tmp_path: pathlib.Path) -> None:
	write_template_pdf(tmp_path / "legal.pdf")
	roster_path = tmp_path / "roster.json"
	roster_path.write_text(
		json.dumps({"groups": {"legal": {"template": "legal.pdf", "names": ["Ada Lovelace"]}}}),
		encoding="utf-8",
	)
	exit_code = tp.cli.main(["batch", str(roster_path), "--output-dir", str(tmp_path / "out")])
	assert exit_code == 0
	assert (tmp_path / "out" / "certificates_legal" / "Ada_Lovelace_legal_certificate.pdf").is_file()


#============================================
@pytest.mark.parametrize(
	"layout",
	[
		{"photo_slot": {"x": 0.1}},
		{"photo_slot": "left"},
		{"name_slot": "big"},
		{"name_slot": {"x": "0.5"}},
		{"name_slot": {"bold": "yes"}},
		{"export_scale": "2"},
		{"export_scale": 1.5},
		{"preset": ["certificate"]},
		{"filename_suffix": 7},
		[1, 2, 3],
	],
)
def test_render_rejects_malformed_layout(tmp_path: pathlib.Path, capsys, layout) -> None:
	"""
	A bad layout file is reported as an error, not a traceback.
	"""
	template_path, _photo_path = write_images(tmp_path)
	layout_path = tmp_path / "layout.json"
	layout_path.write_text(json.dumps(layout), encoding="utf-8")
	exit_code = tp.cli.main([
		"render",
		"--preset", "certificate",
		"--layout", str(layout_path),
		"--template", str(template_path),
		"--name", "Ada",
		"--output-dir", str(tmp_path / "out"),
	])
	assert exit_code == 1
	assert "Error:" in capsys.readouterr().out
	assert not (tmp_path / "out").exists()


#============================================
def test_stamp_name_cannot_leave_output_dir(tmp_path: pathlib.Path) -> None:
	template = write_template_pdf(tmp_path / "mentor.pdf")
	out_dir = tmp_path / "a" / "b"
	exit_code = tp.cli.main([
		"stamp",
		"--template", str(template),
		"--name", "../../escape",
		"--output-dir", str(out_dir),
	])
	assert exit_code == 0
	written = list(out_dir.iterdir())
	assert len(written) == 1
	assert written[0].parent == out_dir
	assert not list(tmp_path.glob("escape*"))
	assert not list((tmp_path / "a").glob("escape*"))
