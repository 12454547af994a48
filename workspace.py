"""
workspace.py — Per-run scratch directories, upload staging and zip packaging.

Each run gets its own temporary tree so concurrent runs never share files:

    <tmp>/map-pins-XXXX/
        svg/               staged icon uploads
        pngWithSvg/        generated PNGs
        mapSettings.json   generated settings
"""

import logging
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from config import MAX_UPLOAD_BYTES, OUTPUT_DIR, MAP_SETTINGS_OUTPUT, SVG_DIR
from errors import UploadError

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    root: Path
    svg_dir: Path
    output_dir: Path
    map_settings_output: Path


@contextmanager
def pin_workspace(prefix: str = "map-pins-"):
    """Create a temporary workspace and remove it however the block exits."""
    root = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        svg_dir = root / SVG_DIR
        svg_dir.mkdir()
        yield Workspace(
            root=root,
            svg_dir=svg_dir,
            output_dir=root / OUTPUT_DIR,
            map_settings_output=root / MAP_SETTINGS_OUTPUT,
        )
    finally:
        shutil.rmtree(root, ignore_errors=True)
        logger.debug(f"Removed workspace {root}")


def stage_uploads(uploads, svg_dir, max_bytes: int = MAX_UPLOAD_BYTES) -> list[Path]:
    """Write uploaded ``(filename, data)`` pairs into ``svg_dir``.

    Only the base name of each filename is used, so a client cannot write
    outside the folder.  Every file is checked before any is written.
    """
    uploads = list(uploads)
    if not uploads:
        raise UploadError("No SVG files uploaded.")

    staged = []
    for filename, data in uploads:
        safe_name = Path(filename.replace("\\", "/")).name
        if Path(safe_name).suffix.lower() != ".svg":
            raise UploadError(f"Only .svg files are allowed (got {filename!r}).")
        if len(data) > max_bytes:
            raise UploadError(f"{safe_name} is larger than {max_bytes} bytes.")
        staged.append((Path(svg_dir) / safe_name, data))

    for path, data in staged:
        path.write_bytes(data)
    return [path for path, _ in staged]


def build_archive(output_dir, map_settings_output, dest) -> Path:
    """Zip the generated PNGs (under ``pngWithSvg/``) and the settings file."""
    output_dir = Path(output_dir)
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(dest, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for png in sorted(output_dir.iterdir()):
            if png.is_file():
                archive.write(png, f"{OUTPUT_DIR}/{png.name}")
        archive.write(map_settings_output, MAP_SETTINGS_OUTPUT)
    logger.info(f"Archive written to {dest}")
    return dest
