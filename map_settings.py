"""
map_settings.py — Build the map settings document that points the map UI at
the generated marker images.

The template is loaded, its ``markerImages`` block is replaced outright and
the cluster colors are overwritten; everything else in the template is passed
through untouched.
"""

import json
import logging
from pathlib import Path

from config import ACTIVE_PIN, ACTIVE_SUFFIX, DEFAULT_PIN, OWN_LOCATION_PIN
from errors import SettingsTemplateError

logger = logging.getLogger(__name__)


def load_template(path) -> dict:
    """Read the settings template and check it has ``layerStyles.clusterCount``."""
    path = Path(path)
    try:
        settings = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SettingsTemplateError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(settings, dict):
        raise SettingsTemplateError(f"{path} must contain a JSON object")
    layer_styles = settings.get("layerStyles")
    if not isinstance(layer_styles, dict) or not isinstance(layer_styles.get("clusterCount"), dict):
        raise SettingsTemplateError(f"{path} is missing the layerStyles.clusterCount object")
    return settings


def marker_uri(base_uri: str, name: str) -> str:
    return f"{base_uri.rstrip('/')}/{name}.png"


def build_marker_images(names, options) -> dict:
    """Return the ``markerImages`` mapping for the base pins plus every icon.

    Base pins come first, then for each icon name (sorted) a default entry and
    an ``<name>Active`` entry.
    """
    base_uri = options.map_pins_base_uri

    def entry(name, color):
        return {"uri": marker_uri(base_uri, name), "color": color}

    images = {
        DEFAULT_PIN: entry(DEFAULT_PIN, options.base_pin_color_default),
        ACTIVE_PIN: entry(ACTIVE_PIN, options.base_pin_color_active),
        OWN_LOCATION_PIN: entry(OWN_LOCATION_PIN, options.base_pin_color_own),
    }
    for name in sorted(names):
        images[name] = entry(name, options.base_pin_color_default)
        images[f"{name}{ACTIVE_SUFFIX}"] = entry(
            f"{name}{ACTIVE_SUFFIX}", options.base_pin_color_active
        )
    return images


def apply_settings(settings: dict, names, options) -> dict:
    """Write marker images and cluster colors into ``settings`` (in place)."""
    try:
        cluster_count = settings["layerStyles"]["clusterCount"]
    except (KeyError, TypeError) as exc:
        raise SettingsTemplateError("Settings are missing layerStyles.clusterCount") from exc
    if not isinstance(cluster_count, dict):
        raise SettingsTemplateError("layerStyles.clusterCount must be an object")

    settings["markerImages"] = build_marker_images(names, options)
    settings["clusterSuperiorColor"] = options.cluster_color
    settings["clusterSuperiorTextColor"] = options.cluster_text_color
    settings["clusterFallbackColor"] = options.cluster_color
    settings["clusterFallbackTextColor"] = options.cluster_text_color
    cluster_count["textColor"] = options.cluster_text_color
    return settings


def write_map_settings(settings: dict, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info(f"Map settings saved to {path} ({len(settings['markerImages'])} marker images)")
    return path


def update_map_settings(template_path, output_path, names, options) -> Path:
    """Load the template, fill it in for ``names`` and write it out."""
    settings = load_template(template_path)
    apply_settings(settings, names, options)
    return write_map_settings(settings, output_path)
