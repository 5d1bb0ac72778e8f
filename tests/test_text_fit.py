import pytest

import template_personalizer as tp
import template_personalizer.config
import template_personalizer.layout

Size = tp.config.Size
TextOverlay = tp.config.TextOverlay


#============================================
def linear_measure(width_at_one_px: float):
	"""
	Build a measurer whose width grows linearly with font size.

	Args:
		width_at_one_px: Rendered width at a 1px font.

	Returns:
		Measure callable.
	"""
	def measure(text: str, font_spec: tp.config.FontSpec) -> float:
		return width_at_one_px * font_spec.size
	return measure


#============================================
def test_shrink_worked_example() -> None:
	"""
	45px text measuring 600px against a 480px allowance shrinks to 36px.
	"""
	overlay = TextOverlay(
		x=0.5,
		y=0.5,
		text="A Rather Long Participant Name",
		font_size_fraction=0.045,
		max_width_fraction=0.48,
		min_font_size=12.0,
	)
	measure = linear_measure(600.0 / 45.0)
	plan = tp.layout.compute_draw_plan(Size(1000, 700), Size(1000, 700), [overlay], measure)
	placement = plan.primitives[0]
	assert placement.font_size == pytest.approx(36.0)
	assert placement.max_width == pytest.approx(480.0)
	assert placement.clamped is False


#============================================
def test_shrink_is_one_shot() -> None:
	"""
	The proportional correction measures the text only once.
	"""
	calls = []

	def measure(text, font_spec):
		calls.append(font_spec.size)
		return 600.0

	size, clamped = tp.layout.resolve_font_size("name", 45.0, 480.0, 12.0, measure)
	assert size == pytest.approx(36.0)
	assert clamped is False
	assert calls == [45.0]


#============================================
@pytest.mark.parametrize("measured", [0.0, 100.0, 479.99, 480.0])
def test_no_shrink_when_text_fits(measured: float) -> None:
	size, clamped = tp.layout.resolve_font_size(
		"name", 45.0, 480.0, 12.0, lambda text, font_spec: measured
	)
	assert size == 45.0
	assert clamped is False


#============================================
@pytest.mark.parametrize("measured", [481.0, 1000.0, 5000.0, 1e9])
def test_font_size_never_below_floor(measured: float) -> None:
	size, clamped = tp.layout.resolve_font_size(
		"name", 45.0, 480.0, 24.0, lambda text, font_spec: measured
	)
	assert size >= 24.0
	if 45.0 * 480.0 / measured < 24.0:
		assert size == 24.0
		assert clamped is True


#============================================
def test_floor_wins_over_small_base() -> None:
	"""
	A base size under the floor starts at the floor.
	"""
	size, clamped = tp.layout.resolve_font_size("x", 5.0, 1000.0, 12.0, lambda text, font_spec: 10.0)
	assert size == 12.0
	assert clamped is False


#============================================
def test_measure_receives_font_spec() -> None:
	specs = []

	def measure(text, font_spec):
		specs.append(font_spec)
		return 0.0

	tp.layout.resolve_font_size("x", 30.0, 100.0, 12.0, measure, bold=True, font_path="/tmp/a.ttf")
	assert specs == [tp.config.FontSpec(size=30.0, bold=True, font_path="/tmp/a.ttf")]


#============================================
def test_clamped_text_flagged_in_plan() -> None:
	overlay = TextOverlay(
		x=0.5,
		y=0.5,
		text="W" * 200,
		font_size_fraction=0.05,
		max_width_fraction=0.2,
		min_font_size=24.0,
	)
	measure = linear_measure(100.0)
	plan = tp.layout.compute_draw_plan(Size(600, 800), Size(600, 800), [overlay], measure)
	placement = plan.primitives[0]
	assert placement.font_size == 24.0
	assert placement.clamped is True


#============================================
def test_stepped_shrink_steps_two_percent() -> None:
	"""
	Stepped mode lands on the first 2% step that fits.
	"""
	measure = linear_measure(10.0)
	# 50px measures 500px; 400px allowance needs 40px, reached after 10 steps of 1px
	size, clamped = tp.layout.resolve_font_size_stepped("x", 50.0, 400.0, 12.0, measure)
	assert size == pytest.approx(40.0)
	assert clamped is False


#============================================
def test_stepped_shrink_no_change_when_fits() -> None:
	size, clamped = tp.layout.resolve_font_size_stepped(
		"x", 50.0, 400.0, 12.0, lambda text, font_spec: 100.0
	)
	assert size == 50.0
	assert clamped is False


#============================================
def test_stepped_shrink_is_bounded() -> None:
	"""
	Text that never fits stops at the step limit and is clamped to the floor.
	"""
	calls = []

	def measure(text, font_spec):
		calls.append(font_spec.size)
		return 1e9

	size, clamped = tp.layout.resolve_font_size_stepped("x", 100.0, 10.0, 30.0, measure)
	assert len(calls) <= tp.config.MAX_SHRINK_STEPS + 1
	assert min(calls) >= 100.0 * tp.config.SHRINK_FLOOR_FRACTION - 1e-9
	assert size == 30.0
	assert clamped is True


#============================================
def test_stepped_mode_in_plan() -> None:
	overlay = TextOverlay(
		x=0.5,
		y=0.5,
		text="name",
		font_size_fraction=0.05,
		max_width_fraction=0.4,
		min_font_size=12.0,
	)
	measure = linear_measure(10.0)
	plan = tp.layout.compute_draw_plan(
		Size(1000, 1000),
		Size(1000, 1000),
		[overlay],
		measure,
		shrink_mode=tp.config.SHRINK_STEPPED,
	)
	assert plan.primitives[0].font_size == pytest.approx(40.0)
