from typing import Tuple

from pageflux.models.types import ColorMode

RGB = Tuple[int, int, int]

def luminance(rgb: RGB) -> int:
    """Perceptual luminance (ITU-R 601), 0-255."""
    r, g, b = rgb
    return round(0.299 * r + 0.587 * g + 0.114 * b)

def convert_color(rgb: RGB, mode: ColorMode) -> RGB:
    """
    Converts an RGB triple to the requested color mode.
    grayscale: perceptual luminance; mono: luminance thresholded at 127.
    """
    if mode is ColorMode.COLOR:
        return rgb
    gray = luminance(rgb)
    if mode is ColorMode.MONO:
        bw = 255 if gray > 127 else 0
        return (bw, bw, bw)
    return (gray, gray, gray)

def to_unit_rgb(rgb: RGB) -> Tuple[float, float, float]:
    """0-255 triple to the 0.0-1.0 floats used by PDF drawing APIs."""
    return tuple(c / 255.0 for c in rgb)
