from __future__ import annotations
import json
import logging
import math
from dataclasses import dataclass, asdict, field, fields, replace
from typing import Dict, Any, Optional, Sequence

from errors import InvalidSettings

logger = logging.getLogger(__name__)

SYMMETRY_OFF = "off"
SYMMETRY_2 = "2-way"
SYMMETRY_4 = "4-way"
SYMMETRY_8 = "8-way"
SYMMETRY_MODES = (SYMMETRY_OFF, SYMMETRY_2, SYMMETRY_4, SYMMETRY_8)

OVERLAY_NONE = "none"
OVERLAY_WATERMARK = "watermark"
OVERLAY_MASK_POSITIVE = "mask-positive"
OVERLAY_MASK_NEGATIVE = "mask-negative"
OVERLAY_ACCENT_GLOW = "accent-glow"
OVERLAY_WARPED = "warped"
OVERLAY_MODES = (OVERLAY_NONE, OVERLAY_WATERMARK, OVERLAY_MASK_POSITIVE,
                 OVERLAY_MASK_NEGATIVE, OVERLAY_ACCENT_GLOW, OVERLAY_WARPED)


# ---------------- option descriptors ----------------
@dataclass
class Option: default: Any
class Bool(Option):
    def coerce(self, v):
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return bool(v)
class Float(Option):
    def __init__(self, default: float, min_value: float, max_value: float, step: float = 0.01):
        super().__init__(default); self.min=min_value; self.max=max_value; self.step=step
    def coerce(self, v):
        v = float(v)
        if math.isnan(v):
            return float(self.default)
        return max(self.min, min(self.max, v))
class Enum(Option):
    def __init__(self, default: str, choices: Sequence[str], aliases: Optional[Dict[Any, str]] = None):
        super().__init__(default); self.choices=list(choices); self.aliases=dict(aliases or {})
    def coerce(self, v):
        if v in self.aliases:
            return self.aliases[v]
        if isinstance(v, str) and v.isdigit() and int(v) in self.aliases:
            return self.aliases[int(v)]
        if v not in self.choices:
            raise InvalidSettings(f"{v!r} is not one of {self.choices}")
        return v

def _opt(option: Option):
    return field(default=option.default, metadata={"option": option})


@dataclass(frozen=True)
class AnimationOffset:
    """Geometry deltas for one instant of an animation clock."""
    rotation: float = 0.0   # degrees
    zoom: float = 0.0
    pan_x: float = 0.0      # percent of output width
    pan_y: float = 0.0      # percent of output height


# camelCase names used by saved presets of the web generator
_LEGACY_KEYS = {
    "distortionX": "distortion_x",
    "distortionY": "distortion_y",
    "pixelSortThreshold": "pixel_sort_threshold",
    "noiseAmount": "noise_amount",
    "colorMix": "color_mix",
    "limeAccent": "accent_percent",
    "patternTextureMix": "pattern_texture_mix",
    "patternDetailMix": "pattern_detail_mix",
    "kaleidoscopeSegments": "symmetry",
    "mirrorMode": "mirror",
    "shiftX": "pan_x",
    "shiftY": "pan_y",
    "logoOverlay": "overlay",
    "logoScale": "overlay_scale",
    "cameraPreviewEnabled": "camera_enabled",
    "animationEnabled": "animation_enabled",
    "animationSpeed": "animation_speed",
    "animationIntensity": "animation_intensity",
    "typewriterEnabled": "typewriter_enabled",
    "typewriterSpeed": "typewriter_speed",
}


@dataclass(frozen=True)
class Settings:
    """Immutable parameter snapshot for one render pass.

    Values are clamped into their option ranges on construction, so every
    percentage lies in [0, 100] and zoom stays positive.
    """
    contrast: float = _opt(Float(130.0, 0.0, 200.0, 1.0))
    brightness: float = _opt(Float(100.0, 0.0, 200.0, 1.0))
    distortion_x: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    distortion_y: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    pixel_sort_threshold: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    noise_amount: float = _opt(Float(15.0, 0.0, 100.0, 1.0))
    scanlines: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    color_mix: float = _opt(Float(100.0, 0.0, 100.0, 1.0))
    accent_percent: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    pattern_texture_mix: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    pattern_detail_mix: float = _opt(Float(0.0, 0.0, 100.0, 1.0))
    symmetry: str = _opt(Enum(SYMMETRY_4, SYMMETRY_MODES,
                              {0: SYMMETRY_OFF, 2: SYMMETRY_2, 4: SYMMETRY_4, 8: SYMMETRY_8,
                               "none": SYMMETRY_OFF}))
    mirror: bool = _opt(Bool(True))
    zoom: float = _opt(Float(1.0, 0.1, 5.0))
    rotation: float = _opt(Float(0.0, 0.0, 360.0, 1.0))
    pan_x: float = _opt(Float(0.0, -100.0, 100.0, 1.0))
    pan_y: float = _opt(Float(0.0, -100.0, 100.0, 1.0))
    overlay: str = _opt(Enum(OVERLAY_MASK_NEGATIVE, OVERLAY_MODES,
                             {"lime-logo": OVERLAY_ACCENT_GLOW, "warp-logo": OVERLAY_WARPED}))
    overlay_scale: float = _opt(Float(0.8, 0.1, 2.0))
    camera_enabled: bool = _opt(Bool(False))
    animation_enabled: bool = _opt(Bool(False))
    animation_speed: float = _opt(Float(50.0, 0.0, 100.0, 1.0))
    animation_intensity: float = _opt(Float(30.0, 0.0, 100.0, 1.0))
    typewriter_enabled: bool = _opt(Bool(False))
    typewriter_speed: float = _opt(Float(50.0, 0.0, 100.0, 1.0))
    animation: Optional[AnimationOffset] = None

    def __post_init__(self):
        for f in fields(self):
            opt = f.metadata.get("option")
            if opt is None:
                continue
            try:
                value = opt.coerce(getattr(self, f.name))
            except (TypeError, ValueError) as e:
                raise InvalidSettings(f"bad value for {f.name}: {e}") from e
            object.__setattr__(self, f.name, value)

    def replace(self, **changes) -> "Settings":
        return replace(self, **changes)

    def at_time(self, elapsed: float) -> "Settings":
        """Snapshot with the animation offset for ``elapsed`` seconds."""
        if not self.animation_enabled:
            return self
        from animation import animation_offset
        return replace(self, animation=animation_offset(elapsed, self.animation_speed, self.animation_intensity))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @staticmethod
    def from_dict(obj: Dict[str, Any]) -> "Settings":
        known = {f.name for f in fields(Settings)}
        kwargs: Dict[str, Any] = {}
        for key, value in obj.items():
            name = _LEGACY_KEYS.get(key, key)
            if name not in known:
                logger.warning("Ignoring unknown settings key: %s", key)
                continue
            kwargs[name] = value
        anim = kwargs.get("animation")
        if isinstance(anim, dict):
            kwargs["animation"] = AnimationOffset(**anim)
        return Settings(**kwargs)

    @staticmethod
    def from_json(s: str) -> "Settings":
        obj = json.loads(s)
        if not isinstance(obj, dict):
            raise InvalidSettings("settings JSON must be an object")
        return Settings.from_dict(obj)


def option_for(name: str) -> Option:
    for f in fields(Settings):
        if f.name == name and "option" in f.metadata:
            return f.metadata["option"]
    raise InvalidSettings(f"unknown setting: {name}")
