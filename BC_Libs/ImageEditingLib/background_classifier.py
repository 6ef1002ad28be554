"""
Background/foreground classification.

A background policy decides whether a pixel counts as "not part of the
subject". Two policies exist:

- TransparentPolicy: alpha below a fixed threshold is background
- ColorKeyPolicy: RGB distance to a key colour below a threshold is background

Functions:
    is_background: Classify a single RGBA pixel
    classify_pixels: Classify a whole PixelBuffer at once
    make_policy: Build a policy from a detect mode and a hex colour
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from BC_Libs.constants import (
    ALPHA_THRESHOLD,
    DETECT_COLOR_THRESHOLD,
    DETECT_MODE_COLOR,
    DETECT_MODE_TRANSPARENT,
    DETECT_MODES,
    DEFAULT_BACKGROUND_COLOR,
)
from BC_Libs.ImageEditingLib.color_matching import color_distance, distance_map, parse_hex_color
from BC_Libs.ImageEditingLib.image_models import ColorRGB, PixelBuffer


@dataclass(frozen=True)
class TransparentPolicy:
    """Pixels with alpha below ``ALPHA_THRESHOLD`` are background."""

    alpha_threshold: int = ALPHA_THRESHOLD


@dataclass(frozen=True)
class ColorKeyPolicy:
    """
    Pixels close to ``color`` are background.

    A policy whose colour is None classifies nothing as background.
    """

    color: Optional[ColorRGB]
    distance_threshold: float = DETECT_COLOR_THRESHOLD


BackgroundPolicy = Union[TransparentPolicy, ColorKeyPolicy]


def is_background(pixel: Sequence[int], policy: BackgroundPolicy) -> bool:
    """
    Decide whether one RGBA pixel is background under ``policy``.

    Args:
        pixel: (r, g, b, a) tuple
        policy: TransparentPolicy or ColorKeyPolicy

    Returns:
        True if the pixel counts as background
    """
    if isinstance(policy, TransparentPolicy):
        return pixel[3] < policy.alpha_threshold
    if isinstance(policy, ColorKeyPolicy):
        if policy.color is None:
            return False
        return color_distance(pixel, policy.color) < policy.distance_threshold
    raise TypeError(f"Unsupported background policy: {type(policy)}")


def classify_pixels(buffer: PixelBuffer, policy: BackgroundPolicy) -> np.ndarray:
    """
    Classify every pixel of ``buffer``.

    Agrees with ``is_background`` pixel for pixel; computed with numpy so a
    whole image is classified in one pass.

    Returns:
        Boolean array of shape (height, width), True for background
    """
    if isinstance(policy, TransparentPolicy):
        return buffer.pixels[:, :, 3] < policy.alpha_threshold
    if isinstance(policy, ColorKeyPolicy):
        if policy.color is None:
            return np.zeros((buffer.height, buffer.width), dtype=bool)
        return distance_map(buffer, policy.color) < policy.distance_threshold
    raise TypeError(f"Unsupported background policy: {type(policy)}")


def make_policy(mode: str, color: Optional[str] = None) -> BackgroundPolicy:
    """
    Build a background policy from auto-detect options.

    Args:
        mode: 'transparent' or 'color'
        color: Hex colour used by 'color' mode

    Raises:
        ValueError: If mode is unknown
    """
    mode = str(mode).strip().lower()
    if mode == DETECT_MODE_TRANSPARENT:
        return TransparentPolicy()
    if mode == DETECT_MODE_COLOR:
        return ColorKeyPolicy(parse_hex_color(color))
    raise ValueError(f"Unknown detect mode: {mode}. Valid modes: {', '.join(DETECT_MODES)}")


@dataclass
class AutoDetectConfig:
    """Configuration for object auto-detection.

    Attributes:
        mode: 'transparent' (alpha based) or 'color' (colour key)
        color: Background colour for 'color' mode
    """
    mode: str = DETECT_MODE_TRANSPARENT
    color: str = DEFAULT_BACKGROUND_COLOR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"mode": self.mode, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutoDetectConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__}
        return cls(**filtered)

    def to_policy(self) -> BackgroundPolicy:
        return make_policy(self.mode, self.color)
