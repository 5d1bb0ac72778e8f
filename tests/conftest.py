"""
Pytest configuration for local imports and shared fixtures.
"""

# Standard Library
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

# local repo modules
import template_personalizer as tp
import template_personalizer.config

CHAR_WIDTH_RATIO = 0.5


#============================================
def fixed_width_measure(text: str, font_spec: tp.config.FontSpec) -> float:
	"""
	Measure text as if every glyph were half the font size wide.
	"""
	return len(text) * font_spec.size * CHAR_WIDTH_RATIO


@pytest.fixture
def measure():
	return fixed_width_measure


@pytest.fixture
def template_image() -> PIL.Image.Image:
	"""
	Landscape template, solid blue.
	"""
	return PIL.Image.new("RGB", (400, 300), (20, 40, 200))


@pytest.fixture
def photo_image() -> PIL.Image.Image:
	"""
	Wide photo, solid red.
	"""
	return PIL.Image.new("RGB", (200, 100), (220, 10, 10))
