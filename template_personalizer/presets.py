"""
Generator presets and layout JSON loading.
"""

# Standard Library
import copy
import dataclasses
import json
import pathlib

# local repo modules
import template_personalizer as tp
import template_personalizer.config


GeneratorPreset = tp.config.GeneratorPreset
NameSlot = tp.config.NameSlot
PhotoSlot = tp.config.PhotoSlot

CLIP_RECTANGLE = tp.config.CLIP_RECTANGLE
CLIP_SHAPES = tp.config.CLIP_SHAPES
SHRINK_MODES = tp.config.SHRINK_MODES
TEXT_TRANSFORMS = tp.config.TEXT_TRANSFORMS
TEXT_TRANSFORM_UPPER = tp.config.TEXT_TRANSFORM_UPPER
TEXT_TRANSFORM_TITLE = tp.config.TEXT_TRANSFORM_TITLE

DEFAULT_CAPTION = """I will be at Faith & Energy Conference 1.0 🔥

📅 Nov 15, 2025
📍 Pistis Annex Marwa, Lekki Lagos
🕘 9AM sharp
Theme: "The Great Light" (Matthew 4:16)

If you are ready for growth, direction, and networking that will improve your energy career, you should be there too! 💥
👉 Register at conference.gepafrica.com

#FaithAndEnergy #GEPA #TheGreatLight #IWillBeAttending #FaithVibesOnly"""

PROFILE_PRESET = GeneratorPreset(
	key="profile",
	template_path="New_template.jpg",
	name_slot=NameSlot(
		x=0.27,
		y=0.70,
		font_size_fraction=0.035,
		max_width_fraction=0.38,
		min_font_size=12.0,
		export_min_font_size=24.0,
		bold=True,
		color="#FFFFFF",
		text_transform=TEXT_TRANSFORM_UPPER,
	),
	photo_slot=PhotoSlot(x=0.10, y=0.28, width=0.34, height=0.38, clip=CLIP_RECTANGLE),
	filename_suffix="GEPA_Profile",
	caption=DEFAULT_CAPTION,
	preview_width=600,
	preview_height=800,
)

CERTIFICATE_PRESET = GeneratorPreset(
	key="certificate",
	template_path="certificate.jpg",
	name_slot=NameSlot(
		x=0.33,
		y=0.53,
		font_size_fraction=0.045,
		max_width_fraction=0.48,
		min_font_size=12.0,
		export_min_font_size=24.0,
		bold=False,
		color="#595959",
		text_transform=TEXT_TRANSFORM_TITLE,
	),
	photo_slot=None,
	filename_suffix="Certificate",
	caption="",
	preview_width=800,
	preview_height=600,
)

PRESETS = {
	PROFILE_PRESET.key: PROFILE_PRESET,
	CERTIFICATE_PRESET.key: CERTIFICATE_PRESET,
}


#============================================
def get_preset(key: str) -> GeneratorPreset:
	"""
	Return a copy of a built-in preset.

	Args:
		key: Preset key.

	Returns:
		GeneratorPreset the caller may modify.
	"""
	if key not in PRESETS:
		raise ValueError(f"Unknown preset {key!r}; expected one of {', '.join(PRESETS)}")
	return copy.deepcopy(PRESETS[key])


#============================================
def _apply_fields(target: object, values: dict, label: str) -> None:
	"""
	Copy known dataclass fields from a JSON object onto a dataclass.

	Args:
		target: Dataclass instance.
		values: JSON object.
		label: Section name for error messages.
	"""
	if not isinstance(values, dict):
		raise ValueError(f"{label} must be a JSON object, got {type(values).__name__}")
	known = {field.name for field in dataclasses.fields(target)}
	for key, value in values.items():
		if key not in known:
			raise ValueError(f"Unknown {label} field {key!r}")
		setattr(target, key, value)


#============================================
def apply_layout_overrides(preset: GeneratorPreset, data: dict) -> GeneratorPreset:
	"""
	Apply a layout JSON object on top of a preset.

	Args:
		preset: Base preset (modified in place).
		data: Parsed layout JSON.

	Returns:
		The updated preset.
	"""
	for key, value in data.items():
		if key == "preset":
			continue
		if key == "name_slot":
			_apply_fields(preset.name_slot, value, "name_slot")
			continue
		if key == "photo_slot":
			if value is None:
				preset.photo_slot = None
			elif preset.photo_slot is None:
				if not isinstance(value, dict):
					raise ValueError(f"photo_slot must be a JSON object, got {type(value).__name__}")
				try:
					preset.photo_slot = PhotoSlot(**value)
				except TypeError as error:
					raise ValueError(f"Invalid photo_slot: {error}") from error
			else:
				_apply_fields(preset.photo_slot, value, "photo_slot")
			continue
		_apply_fields(preset, {key: value}, "preset")
	validate_preset(preset)
	return preset


#============================================
def _check_number(value: object, label: str) -> None:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		raise ValueError(f"{label} must be a number, got {value!r}")


#============================================
def _check_string(value: object, label: str) -> None:
	if not isinstance(value, str):
		raise ValueError(f"{label} must be a string, got {value!r}")


#============================================
def validate_preset(preset: GeneratorPreset) -> None:
	"""
	Check preset value types and enumerated values.
	"""
	slot = preset.name_slot
	for name in ("x", "y", "font_size_fraction", "max_width_fraction", "min_font_size", "export_min_font_size"):
		_check_number(getattr(slot, name), f"name_slot.{name}")
	for name in ("color", "text_transform"):
		_check_string(getattr(slot, name), f"name_slot.{name}")
	if not isinstance(slot.bold, bool):
		raise ValueError(f"name_slot.bold must be true or false, got {slot.bold!r}")
	if slot.font_path is not None:
		_check_string(slot.font_path, "name_slot.font_path")
	if preset.photo_slot is not None:
		for name in ("x", "y", "width", "height"):
			_check_number(getattr(preset.photo_slot, name), f"photo_slot.{name}")
		_check_string(preset.photo_slot.clip, "photo_slot.clip")
	for name in ("export_scale", "preview_width", "preview_height"):
		value = getattr(preset, name)
		if isinstance(value, bool) or not isinstance(value, int):
			raise ValueError(f"{name} must be an integer, got {value!r}")
	for name in ("key", "template_path", "filename_suffix", "caption", "share_title", "shrink_mode"):
		_check_string(getattr(preset, name), name)

	if preset.name_slot.text_transform not in TEXT_TRANSFORMS:
		raise ValueError(f"Unknown text_transform {preset.name_slot.text_transform!r}")
	if preset.shrink_mode not in SHRINK_MODES:
		raise ValueError(f"Unknown shrink_mode {preset.shrink_mode!r}")
	if preset.photo_slot is not None and preset.photo_slot.clip not in CLIP_SHAPES:
		raise ValueError(f"Unknown clip {preset.photo_slot.clip!r}")
	if preset.export_scale < 1:
		raise ValueError(f"export_scale must be at least 1, got {preset.export_scale}")


#============================================
def load_layout_file(path: pathlib.Path, default_key: str = "profile") -> GeneratorPreset:
	"""
	Load a layout JSON file on top of its base preset.

	The optional "preset" key names the base; relative template paths
	resolve against the layout file.

	Args:
		path: Layout JSON path.
		default_key: Base preset when the file names none.

	Returns:
		GeneratorPreset.
	"""
	path = pathlib.Path(path)
	with path.open("r", encoding="utf-8") as handle:
		data = json.load(handle)
	if not isinstance(data, dict):
		raise ValueError(f"Layout file must hold a JSON object: {path}")
	base_key = data.get("preset", default_key)
	_check_string(base_key, "preset")
	preset = get_preset(base_key)
	apply_layout_overrides(preset, data)
	if "template_path" in data and not pathlib.Path(preset.template_path).is_absolute():
		preset.template_path = str(path.parent / preset.template_path)
	return preset
