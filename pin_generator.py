#!/usr/bin/env python3
"""
pin_generator.py — Map pin PNG generator.

Turns every SVG icon in a folder into a pair of map markers (default and
active state) by compositing the icon onto the base pin shapes, and writes a
map settings JSON that points at the generated images.

Stages:
  1. Options — resolve raw option values into validated PinOptions
  2. Icons   — list the icon SVGs to process
  3. Base    — recolor the three base pins and measure them
  4. Sizes   — derive the icon render size, reject sizes that do not fit
  5. Render  — write the base pin PNGs and composite every icon twice
  6. Settings — fill in the map settings template

Usage:
    python3 pin_generator.py                          # defaults next to this file
    python3 pin_generator.py --svg-dir icons/ --out build/pins
    python3 pin_generator.py --set ICON_SCALE=0.4 --set COMPOSITE_SCALE=3
    python3 pin_generator.py --env-file prod.env --zip   # also write map-pins.zip
    python3 pin_generator.py -h                       # show this help

Options are read from the .env file, then the process environment, then
--set pairs (later wins).  See config.DEFAULT_OPTIONS for every name.
"""

import argparse
import base64
import logging
import math
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from config import (
    DEFAULT_OPTIONS, DEFAULT_PIN, ACTIVE_PIN, OWN_LOCATION_PIN, BASE_PIN_NAMES,
    PIN_FILL_TOKEN, ACTIVE_FILL_TOKENS, OWN_STROKE_TOKEN, ACTIVE_SUFFIX,
    SVG_DIR, BASE_DIR, OUTPUT_DIR, MAP_SETTINGS_TEMPLATE, MAP_SETTINGS_OUTPUT,
    ENV_FILE, LOG_FILE, ARCHIVE_NAME,
)
from errors import (
    ConfigError, DuplicateIconError, IconSizeError, MissingAssetError,
    NoIconsError, PinGenerationError, RasterizeError, UploadError,
)
from map_settings import update_map_settings
from pin_render import composite_pin, render_icon, round_half_up, svg_size, write_png
from svg_colors import apply_active_color, apply_color_map
from workspace import build_archive, pin_workspace, stage_uploads

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent

NUMERIC_OPTIONS = {
    "COMPOSITE_SCALE", "OUTPUT_SCALE", "ICON_SCALE",
    "ICON_OFFSET_X_ACTIVE", "ICON_OFFSET_X_DEFAULT",
    "ICON_OFFSET_Y_ACTIVE", "ICON_OFFSET_Y_DEFAULT",
}


# ── Stage 1: Options ──────────────────────────────────────────────────

@dataclass(frozen=True)
class PinOptions:
    base_pin_color_active: str
    base_pin_color_default: str
    base_pin_color_own: str
    base_pin_ring_color_active: str
    base_pin_stroke_color_own: str
    cluster_color: str
    cluster_text_color: str
    composite_scale: float
    output_scale: float
    icon_color_active: str
    icon_color_default: str
    icon_offset_x_active: float
    icon_offset_x_default: float
    icon_offset_y_active: float
    icon_offset_y_default: float
    icon_scale: float
    map_pins_base_uri: str


def _number(key: str, value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}.") from None
    if not math.isfinite(number):
        raise ConfigError(f"{key} must be a finite number, got {value!r}.")
    return number


def resolve_options(raw=None) -> PinOptions:
    """Map raw option values (strings or numbers) to validated PinOptions.

    Missing and empty-string values fall back to config.DEFAULT_OPTIONS.
    Unknown keys are ignored.  Raises ConfigError for values that are not
    numbers or are out of range.
    """
    raw = raw or {}
    values = {}
    for key, default in DEFAULT_OPTIONS.items():
        value = raw.get(key)
        if value is None or value == "":
            value = default
        values[key.lower()] = _number(key, value) if key in NUMERIC_OPTIONS else str(value)

    if values["composite_scale"] <= 0:
        raise ConfigError("COMPOSITE_SCALE must be a positive number.")
    if not 0 < values["icon_scale"] <= 1:
        raise ConfigError("ICON_SCALE must be a number between 0 and 1.")
    if values["output_scale"] <= 0:
        raise ConfigError("OUTPUT_SCALE must be a positive number.")
    return PinOptions(**values)


# ── Stage 2: Icons ────────────────────────────────────────────────────

def list_svg_files(svg_dir) -> list[Path]:
    """Return the SVG files in ``svg_dir`` sorted by file name.

    Raises DuplicateIconError when two files map to the same marker name,
    which happens when only the case of the extension differs.
    """
    files = sorted(
        (p for p in Path(svg_dir).iterdir() if p.is_file() and p.suffix.lower() == ".svg"),
        key=lambda p: p.name,
    )
    if not files:
        raise NoIconsError(f"No SVG files found in {svg_dir}.")

    seen = {}
    for path in files:
        if path.stem in seen:
            raise DuplicateIconError(
                f"{seen[path.stem].name} and {path.name} would both produce {path.stem}.png."
            )
        seen[path.stem] = path
    return files


def is_reserved(name: str) -> bool:
    return name in BASE_PIN_NAMES


# ── Stage 3: Base pins ────────────────────────────────────────────────

@dataclass
class BasePin:
    name: str
    svg: bytes
    width: int
    height: int
    output_width: int
    output_height: int


def base_recolor_maps(options: PinOptions) -> dict:
    """Token → color replacements applied to each base pin, keyed by pin name."""
    return {
        DEFAULT_PIN: {PIN_FILL_TOKEN: options.base_pin_color_default},
        ACTIVE_PIN: {
            PIN_FILL_TOKEN: options.base_pin_ring_color_active,
            **{token: options.base_pin_color_active for token in ACTIVE_FILL_TOKENS},
        },
        OWN_LOCATION_PIN: {
            PIN_FILL_TOKEN: options.base_pin_color_own,
            OWN_STROKE_TOKEN: options.base_pin_stroke_color_own,
        },
    }


def load_base_pins(base_dir, options: PinOptions) -> dict:
    """Recolor the three base pins and measure them.

    All three SVGs must exist; otherwise MissingAssetError is raised before
    anything is read or written.
    """
    base_dir = Path(base_dir)
    paths = {name: base_dir / f"{name}.svg" for name in BASE_PIN_NAMES}
    missing = [path.name for path in paths.values() if not path.is_file()]
    if missing:
        raise MissingAssetError(f"Base pin SVG missing from {base_dir}: {', '.join(missing)}")

    recolor = base_recolor_maps(options)
    pins = {}
    for name, path in paths.items():
        svg = apply_color_map(path.read_bytes(), recolor[name])
        width, height = svg_size(svg)
        pin = BasePin(
            name=name,
            svg=svg,
            width=width,
            height=height,
            output_width=round_half_up(width * options.output_scale),
            output_height=round_half_up(height * options.output_scale),
        )
        if pin.output_width <= 0 or pin.output_height <= 0:
            raise IconSizeError(f"OUTPUT_SCALE is too small; {name} would be 0 px wide or high.")
        logger.debug(f"{name}: {width}x{height} -> {pin.output_width}x{pin.output_height}")
        pins[name] = pin
    return pins


def write_base_pins(pins: dict, output_dir) -> list[Path]:
    return [
        write_png(pin.svg, Path(output_dir) / f"{pin.name}.png", pin.output_width, pin.output_height)
        for pin in pins.values()
    ]


# ── Stage 4: Sizes ────────────────────────────────────────────────────

def icon_render_sizes(
    base_width: int,
    base_height: int,
    icon_scale: float,
    output_scale: float,
    composite_scale: float,
) -> tuple[int, int]:
    """Return (icon_size, icon_render_size) for a base pin of the given size.

    icon_size is the icon's edge at final resolution; icon_render_size is the
    edge it is rendered at for compositing on the enlarged pin.  Raises
    IconSizeError when either is zero or the render size is larger than the
    scaled pin's shorter side.
    """
    icon_size = round_half_up(min(base_width, base_height) * icon_scale * output_scale)
    render_size = round_half_up(icon_size * composite_scale)
    if icon_size <= 0 or render_size <= 0:
        raise IconSizeError(
            "ICON_SCALE, COMPOSITE_SCALE or OUTPUT_SCALE are too small; resulting icon size is 0."
        )
    limit = min(round_half_up(base_width * output_scale), round_half_up(base_height * output_scale))
    if render_size > limit:
        raise IconSizeError(
            f"ICON_SCALE is too large; icon render size {render_size}px exceeds base pin size {limit}px."
        )
    return icon_size, render_size


# ── Stage 5: Render ───────────────────────────────────────────────────

def render_marker(svg: bytes, name: str, pins: dict, options: PinOptions, render_size: int, output_dir: Path):
    """Write ``<name>.png`` and ``<name>Active.png`` for one icon."""
    variants = (
        (name, options.icon_color_default, pins[DEFAULT_PIN],
         options.icon_offset_x_default, options.icon_offset_y_default),
        (f"{name}{ACTIVE_SUFFIX}", options.icon_color_active, pins[ACTIVE_PIN],
         options.icon_offset_x_active, options.icon_offset_y_active),
    )
    written = []
    for out_name, color, base, offset_x, offset_y in variants:
        icon = render_icon(apply_active_color(svg, color), render_size)
        written.append(composite_pin(
            base.svg,
            icon,
            output_dir / f"{out_name}.png",
            base.output_width,
            base.output_height,
            offset_x * options.output_scale,
            offset_y * options.output_scale,
            options.composite_scale,
        ))
    return written


# ── Pipeline ──────────────────────────────────────────────────────────

@dataclass
class GenerationResult:
    output_dir: Path
    map_settings_output: Path
    markers: list = field(default_factory=list)


def generate_pins(
    options=None,
    svg_dir=None,
    base_dir=None,
    output_dir=None,
    map_settings_template=None,
    map_settings_output=None,
    root_dir=None,
) -> GenerationResult:
    """Run the whole pipeline and return where the output went.

    ``options`` is a PinOptions or a raw mapping for resolve_options.  Paths
    that are not given default to the standard layout under ``root_dir``
    (this file's directory by default).  Files already written are left in
    place if a later step fails.
    """
    if not isinstance(options, PinOptions):
        options = resolve_options(options)

    root = Path(root_dir) if root_dir else ROOT_DIR
    svg_dir = Path(svg_dir) if svg_dir else root / SVG_DIR
    base_dir = Path(base_dir) if base_dir else root / BASE_DIR
    output_dir = Path(output_dir) if output_dir else root / OUTPUT_DIR
    map_settings_template = Path(map_settings_template) if map_settings_template else root / MAP_SETTINGS_TEMPLATE
    map_settings_output = Path(map_settings_output) if map_settings_output else root / MAP_SETTINGS_OUTPUT

    svg_files = list_svg_files(svg_dir)
    logger.info(f"Found {len(svg_files)} SVG files in {svg_dir}")

    pins = load_base_pins(base_dir, options)
    default_pin = pins[DEFAULT_PIN]
    icon_size, render_size = icon_render_sizes(
        default_pin.width, default_pin.height,
        options.icon_scale, options.output_scale, options.composite_scale,
    )
    logger.info(f"Icon size {icon_size}px (rendered at {render_size}px for compositing)")

    output_dir.mkdir(parents=True, exist_ok=True)
    write_base_pins(pins, output_dir)

    markers = []
    for svg_path in svg_files:
        name = svg_path.stem
        if is_reserved(name):
            logger.info(f"Skipping {svg_path.name} (reserved base pin name)")
            continue
        try:
            render_marker(svg_path.read_bytes(), name, pins, options, render_size, output_dir)
        except RasterizeError as exc:
            raise RasterizeError(f"{svg_path.name}: {exc}") from exc
        logger.info(f"Generated {name}.png and {name}{ACTIVE_SUFFIX}.png")
        markers.append(name)

    update_map_settings(map_settings_template, map_settings_output, markers, options)
    return GenerationResult(output_dir=output_dir, map_settings_output=map_settings_output, markers=markers)


# ── Preview ───────────────────────────────────────────────────────────

def png_data_uri(path) -> str:
    return "data:image/png;base64," + base64.b64encode(Path(path).read_bytes()).decode("ascii")


def preview_icon(filename: str, svg: bytes, options=None, base_dir=None, map_settings_template=None) -> dict:
    """Generate both markers for a single uploaded icon in a throwaway
    workspace and return them as PNG data URIs."""
    name = Path(filename.replace("\\", "/")).stem
    if is_reserved(name):
        raise UploadError(f"{name} is a reserved base pin name; rename the icon to preview it.")

    with pin_workspace("map-pins-preview-") as ws:
        (svg_path,) = stage_uploads([(filename, svg)], ws.svg_dir)
        result = generate_pins(
            options,
            svg_dir=ws.svg_dir,
            base_dir=base_dir,
            output_dir=ws.output_dir,
            map_settings_template=map_settings_template,
            map_settings_output=ws.map_settings_output,
        )
        name = svg_path.stem
        return {
            "defaultPng": png_data_uri(result.output_dir / f"{name}.png"),
            "activePng": png_data_uri(result.output_dir / f"{name}{ACTIVE_SUFFIX}.png"),
        }


def generate_archive(
    uploads, options=None, dest=ARCHIVE_NAME, base_dir=None, map_settings_template=None,
) -> Path:
    """Stage uploaded ``(filename, data)`` icons in a throwaway workspace,
    generate every marker and package the result as a zip at ``dest``."""
    with pin_workspace() as ws:
        stage_uploads(uploads, ws.svg_dir)
        result = generate_pins(
            options,
            svg_dir=ws.svg_dir,
            base_dir=base_dir,
            output_dir=ws.output_dir,
            map_settings_template=map_settings_template,
            map_settings_output=ws.map_settings_output,
        )
        return build_archive(result.output_dir, result.map_settings_output, dest)


# ── Main ─────────────────────────────────────────────────────────────

def option_pair(text: str) -> tuple[str, str]:
    """argparse type for --set KEY=VALUE."""
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    if key not in DEFAULT_OPTIONS:
        raise argparse.ArgumentTypeError(f"unknown option {key!r}")
    return key, value


def collect_raw_options(env_file=None, environ=None, overrides=None) -> dict:
    """Merge option sources: .env file < environment < explicit overrides.

    Only recognised option names are kept.
    """
    raw = {}
    if env_file and Path(env_file).is_file():
        raw.update(dotenv_values(env_file))
    raw.update(environ or {})
    raw.update(overrides or {})
    return {key: value for key, value in raw.items() if key in DEFAULT_OPTIONS and value is not None}


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Map Pin Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("--svg-dir", metavar="DIR", help=f"Icon SVG folder (default: ./{SVG_DIR})")
    p.add_argument("--base-dir", metavar="DIR", help=f"Base pin SVG folder (default: ./{BASE_DIR})")
    p.add_argument("--out", metavar="DIR", help=f"Output folder for PNGs (default: ./{OUTPUT_DIR})")
    p.add_argument("--template", metavar="FILE",
                   help=f"Map settings template (default: ./{MAP_SETTINGS_TEMPLATE})")
    p.add_argument("--settings-out", metavar="FILE",
                   help=f"Where to write map settings (default: ./{MAP_SETTINGS_OUTPUT})")
    p.add_argument("--env-file", metavar="FILE", default=str(ROOT_DIR / ENV_FILE),
                   help="dotenv file with option values (ignored if missing)")
    p.add_argument("--set", metavar="KEY=VALUE", action="append", type=option_pair, default=[],
                   help="Override one option; may be repeated")
    p.add_argument("--zip", metavar="FILE", nargs="?", const=ARCHIVE_NAME,
                   help=f"Also package the output into a zip (default name: {ARCHIVE_NAME})")
    p.add_argument("--log-file", metavar="FILE", default=LOG_FILE,
                   help=f"Log file (default: {LOG_FILE})")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def configure_logging(verbose: bool = False, log_file: str | None = LOG_FILE) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    raw = collect_raw_options(args.env_file, os.environ, dict(args.set))
    try:
        result = generate_pins(
            raw,
            svg_dir=args.svg_dir,
            base_dir=args.base_dir,
            output_dir=args.out,
            map_settings_template=args.template,
            map_settings_output=args.settings_out,
        )
        if args.zip:
            build_archive(result.output_dir, result.map_settings_output, args.zip)
    except (PinGenerationError, OSError) as exc:
        logger.error(f"Pin generation failed: {exc}")
        return 1

    logger.info(f"Done. Output in: {result.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
