"""Tests for map_settings.py"""

import json

import pytest

from errors import SettingsTemplateError
from map_settings import (
    apply_settings, build_marker_images, load_template, marker_uri,
    update_map_settings, write_map_settings,
)
from pin_generator import resolve_options


# --- Helpers -------------------------------------------------------------- #

def _write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _options(**overrides):
    raw = {
        "BASE_PIN_COLOR_DEFAULT": "#F0F0F0",
        "BASE_PIN_COLOR_ACTIVE": "#DE7136",
        "BASE_PIN_COLOR_OWN": "#00AAFF",
    }
    raw.update(overrides)
    return resolve_options(raw)


# --- Tests ---------------------------------------------------------------- #

class TestMarkerUri:
    def test_trailing_slashes_stripped(self):
        assert marker_uri("cdn/pins//", "a") == "cdn/pins/a.png"

    def test_plain_base(self):
        assert marker_uri("pngWithSvg", "aActive") == "pngWithSvg/aActive.png"


class TestBuildMarkerImages:
    def test_base_pins_always_present(self):
        images = build_marker_images([], _options())
        assert list(images) == ["defaultPin", "defaultPinActive", "ownLocationPin"]
        assert images["defaultPin"] == {"uri": "pngWithSvg/defaultPin.png", "color": "#F0F0F0"}
        assert images["defaultPinActive"]["color"] == "#DE7136"
        assert images["ownLocationPin"]["color"] == "#00AAFF"

    def test_icon_pairs_sorted_by_name(self):
        images = build_marker_images(["zoo", "bank", "cafe"], _options())
        assert list(images)[3:] == [
            "bank", "bankActive", "cafe", "cafeActive", "zoo", "zooActive",
        ]

    def test_icon_entries(self):
        images = build_marker_images(["bank"], _options(MAP_PINS_BASE_URI="https://cdn.example/pins/"))
        assert images["bank"] == {"uri": "https://cdn.example/pins/bank.png", "color": "#F0F0F0"}
        assert images["bankActive"] == {
            "uri": "https://cdn.example/pins/bankActive.png",
            "color": "#DE7136",
        }


class TestApplySettings:
    def test_cluster_text_color_scenario(self):
        settings = {"layerStyles": {"clusterCount": {"textColor": "#old"}}}
        apply_settings(settings, [], _options(CLUSTER_TEXT_COLOR="#123456"))
        assert settings["layerStyles"]["clusterCount"]["textColor"] == "#123456"
        assert settings["clusterSuperiorTextColor"] == "#123456"
        assert settings["clusterFallbackTextColor"] == "#123456"

    def test_cluster_color_fields(self):
        settings = {"layerStyles": {"clusterCount": {}}}
        apply_settings(settings, [], _options(CLUSTER_COLOR="#ABCDEF"))
        assert settings["clusterSuperiorColor"] == "#ABCDEF"
        assert settings["clusterFallbackColor"] == "#ABCDEF"

    def test_existing_marker_images_replaced(self):
        settings = {
            "markerImages": {"stale": {"uri": "old.png"}, "bank": "garbage"},
            "layerStyles": {"clusterCount": {}},
        }
        apply_settings(settings, ["bank", "atm"], _options())
        assert set(settings["markerImages"]) == {
            "defaultPin", "defaultPinActive", "ownLocationPin",
            "atm", "atmActive", "bank", "bankActive",
        }

    def test_other_fields_untouched(self):
        settings = {"zoom": 12, "layerStyles": {"clusterCount": {"textSize": 11}, "other": {}}}
        apply_settings(settings, [], _options())
        assert settings["zoom"] == 12
        assert settings["layerStyles"]["clusterCount"]["textSize"] == 11
        assert settings["layerStyles"]["other"] == {}

    def test_missing_cluster_count_raises(self):
        with pytest.raises(SettingsTemplateError):
            apply_settings({"layerStyles": {}}, [], _options())

    def test_missing_layer_styles_raises(self):
        with pytest.raises(SettingsTemplateError):
            apply_settings({}, [], _options())


class TestLoadTemplate:
    def test_valid_template(self, tmp_path):
        path = _write_json(tmp_path / "t.json", {"layerStyles": {"clusterCount": {}}})
        assert load_template(path) == {"layerStyles": {"clusterCount": {}}}

    def test_not_an_object(self, tmp_path):
        path = _write_json(tmp_path / "t.json", [1, 2])
        with pytest.raises(SettingsTemplateError):
            load_template(path)

    def test_cluster_count_not_an_object(self, tmp_path):
        path = _write_json(tmp_path / "t.json", {"layerStyles": {"clusterCount": "x"}})
        with pytest.raises(SettingsTemplateError):
            load_template(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SettingsTemplateError, match="not valid JSON"):
            load_template(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_template(tmp_path / "missing.json")


class TestWriteMapSettings:
    def test_two_space_indent_and_trailing_newline(self, tmp_path):
        path = write_map_settings({"markerImages": {}, "name": "Café"}, tmp_path / "out" / "s.json")
        text = path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert '\n  "markerImages": {}' in text
        assert "Café" in text


class TestUpdateMapSettings:
    def test_round_trip(self, tmp_path):
        template = _write_json(tmp_path / "template.json", {
            "markerImages": {"whatever": 1},
            "layerStyles": {"clusterCount": {"textColor": "#old"}},
        })
        out = update_map_settings(template, tmp_path / "mapSettings.json", ["b", "a"], _options())
        data = json.loads(out.read_text(encoding="utf-8"))
        assert list(data["markerImages"]) == [
            "defaultPin", "defaultPinActive", "ownLocationPin",
            "a", "aActive", "b", "bActive",
        ]
        # the template itself is not modified
        assert json.loads(template.read_text())["markerImages"] == {"whatever": 1}
