"""
pin_render.py — SVG rasterisation and pin compositing.

cairosvg turns SVG markup into PNG bytes; everything after that (padding,
trimming, overlaying, resampling) is done on Pillow images.

Icons are composited onto an enlarged copy of the base pin and the result is
scaled back down.  Placing at the larger size first gives sub-pixel offsets a
smoother result than pasting at the final resolution.
"""

import logging
import math
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import cairosvg
from PIL import Image

from config import TRIM_THRESHOLD
from errors import RasterizeError

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)


@dataclass
class IconRender:
    """A rendered icon trimmed to its visible pixels."""
    image: Image.Image
    width: int
    height: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def _as_bytes(svg) -> bytes:
    return svg.encode("utf-8") if isinstance(svg, str) else bytes(svg)


def _svg2png(svg, **kwargs) -> Image.Image:
    try:
        png = cairosvg.svg2png(bytestring=_as_bytes(svg), **kwargs)
        image = Image.open(BytesIO(png))
        image.load()
    except Exception as exc:
        raise RasterizeError(
            f"Could not render SVG ({exc.__class__.__name__}: {exc})"
        ) from exc
    return image.convert("RGBA")


def svg_size(svg) -> tuple[int, int]:
    """Return the intrinsic pixel (width, height) of an SVG document."""
    width, height = _svg2png(svg).size
    if not width or not height:
        raise RasterizeError("SVG has no usable width/height.")
    return width, height


def render_svg(svg, width: int, height: int) -> Image.Image:
    """Render an SVG to an RGBA image of exactly ``width`` x ``height``."""
    return _svg2png(svg, output_width=width, output_height=height)


def trim_transparent(image: Image.Image, threshold: int = TRIM_THRESHOLD) -> Image.Image:
    """Crop away border pixels whose alpha is ``threshold`` or lower."""
    mask = image.getchannel("A").point(lambda a: 255 if a > threshold else 0)
    bbox = mask.getbbox()
    if bbox is None:
        raise RasterizeError("Rendered icon is fully transparent; nothing to trim to.")
    return image.crop(bbox)


def render_icon(svg, size: int) -> IconRender:
    """Render an icon into a ``size`` x ``size`` square and trim it.

    The SVG is fitted inside the square keeping its aspect ratio ("contain"),
    centred on a transparent background, then cropped to its visible
    bounding box.
    """
    src_w, src_h = svg_size(svg)
    scale = min(size / src_w, size / src_h)
    fit_w = min(size, max(1, round_half_up(src_w * scale)))
    fit_h = min(size, max(1, round_half_up(src_h * scale)))

    canvas = Image.new("RGBA", (size, size), TRANSPARENT)
    rendered = render_svg(svg, fit_w, fit_h)
    canvas.paste(rendered, ((size - fit_w) // 2, (size - fit_h) // 2))

    trimmed = trim_transparent(canvas)
    logger.debug(f"Rendered icon at {size}px, trimmed to {trimmed.width}x{trimmed.height}")
    return IconRender(image=trimmed, width=trimmed.width, height=trimmed.height)


def icon_placement(
    width: int,
    height: int,
    icon_width: int,
    icon_height: int,
    offset_x: float,
    offset_y: float,
    composite_scale: float,
) -> tuple[int, int]:
    """Top-left corner of the icon on the enlarged base pin.

    The icon is centred on the ``width`` x ``height`` pin scaled by
    ``composite_scale``, then moved by the offset (also scaled).  Positive x
    moves right, positive y moves down.
    """
    scaled_w = round_half_up(width * composite_scale)
    scaled_h = round_half_up(height * composite_scale)
    left = round_half_up((scaled_w - icon_width) / 2 + offset_x * composite_scale)
    top = round_half_up((scaled_h - icon_height) / 2 + offset_y * composite_scale)
    return left, top


def composite_pin(
    base_svg,
    icon: IconRender,
    out_path,
    width: int,
    height: int,
    offset_x: float,
    offset_y: float,
    composite_scale: float,
) -> Path:
    """Overlay ``icon`` on the base pin and write a ``width`` x ``height`` PNG."""
    scaled_w = round_half_up(width * composite_scale)
    scaled_h = round_half_up(height * composite_scale)
    left, top = icon_placement(
        width, height, icon.width, icon.height, offset_x, offset_y, composite_scale
    )

    base = render_svg(base_svg, scaled_w, scaled_h)
    # paste() clips at the edges, so an offset icon may hang off the pin
    layer = Image.new("RGBA", base.size, TRANSPARENT)
    layer.paste(icon.image, (left, top))
    composed = Image.alpha_composite(base, layer)

    if composed.size != (width, height):
        composed = composed.resize((width, height), Image.Resampling.LANCZOS)

    out_path = Path(out_path)
    composed.save(out_path, "PNG")
    logger.debug(f"Composited {out_path.name} (icon at {left},{top} on {scaled_w}x{scaled_h})")
    return out_path


def write_png(svg, out_path, width: int, height: int) -> Path:
    """Render an SVG standalone at ``width`` x ``height`` and save it."""
    out_path = Path(out_path)
    render_svg(svg, width, height).save(out_path, "PNG")
    return out_path
