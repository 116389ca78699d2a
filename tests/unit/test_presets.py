"""
Tests for the preset library and resolver.
"""

import json

import pytest
import yaml

from photoedit.config import PresetFileFormat, PresetSettings
from photoedit.core.exceptions import PresetImportError
from photoedit.core.models import AdjustmentSet, ToneCurve
from photoedit.core.types import PresetCategory
from photoedit.presets import PresetLibrary, PresetResolver
from photoedit.presets.models import Preset


@pytest.fixture
def library():
    return PresetLibrary(settings=PresetSettings())


@pytest.fixture
def custom_preset(library):
    return library.create_custom_preset(
        "My Look", "Punchy", PresetCategory.MODERN, {"contrast": 40, "vibrance": 10}
    )


class TestBuiltinPresets:
    """Tests for the built-in preset set."""

    def test_seven_builtins(self, library):
        presets = library.get_all_presets()
        assert len(presets) == 7
        assert all(p.author == "PhotoEdit Pro" for p in presets)
        assert not any(p.is_custom for p in presets)

    def test_get_by_id(self, library):
        preset = library.get_preset_by_id("portrait-warm")
        assert preset.name == "Warm Portrait"
        assert preset.adjustments.temperature == 200
        assert library.get_preset_by_id("nope") is None

    def test_by_category(self, library):
        presets = library.get_presets_by_category("black-white")
        assert [p.id for p in presets] == ["black-white-classic"]

    def test_category_summary(self, library):
        summary = library.get_category_summary()
        assert {"category": "vintage", "count": 1} in summary
        assert sum(entry["count"] for entry in summary) == 7

    def test_vintage_split_toning(self, library):
        toning = library.get_preset_by_id("vintage-film").adjustments.split_toning
        assert toning.highlights.hue == 45
        assert toning.shadows.hue == 220

    def test_returned_presets_are_copies(self, library):
        preset = library.get_preset_by_id("portrait-warm")
        preset.name = "Changed"
        assert library.get_preset_by_id("portrait-warm").name == "Warm Portrait"

    def test_builtin_not_deletable(self, library):
        assert not library.delete_preset("portrait-warm")
        assert library.get_preset_by_id("portrait-warm") is not None


class TestApplyPreset:
    def test_apply_overrides_set_fields(self, library):
        base = AdjustmentSet(exposure=1.0, sharpening=30)
        result = library.apply_preset(base, "portrait-warm")
        assert result.exposure == 0.3
        assert result.sharpening == 30
        assert result.temperature == 200
        assert base.exposure == 1.0

    def test_apply_unknown_returns_current(self, library):
        base = AdjustmentSet(contrast=5)
        assert library.apply_preset(base, "missing") is base

    def test_resolver_replaces_nested_records(self):
        base = AdjustmentSet(tone_curve=ToneCurve(highlights=10))
        result = PresetResolver.resolve(base, {"toneCurve": {"shadows": 5}})
        assert result.tone_curve.highlights == 0
        assert result.tone_curve.shadows == 5


class TestCustomPresets:
    """Tests for custom preset CRUD."""

    def test_create(self, library, custom_preset):
        assert custom_preset.id.startswith("custom-")
        assert custom_preset.author == "User"
        assert custom_preset.is_custom
        assert len(library.get_all_presets()) == 8

    def test_name_is_required(self, library):
        with pytest.raises(ValueError):
            library.create_custom_preset("   ", "", "modern", {"contrast": 1})

    def test_create_from_adjustments(self, library):
        adj = AdjustmentSet(exposure=0.4, contrast=0, dehaze=12)
        preset = library.create_preset_from_adjustments(adj, "Saved", "", "landscape")
        assert preset.adjustments.overrides() == {"exposure": 0.4, "dehaze": 12}

    def test_update(self, library, custom_preset):
        assert library.update_preset(custom_preset.id, {"name": "Renamed", "id": "hijack"})
        updated = library.get_preset_by_id(custom_preset.id)
        assert updated.name == "Renamed"
        assert library.get_preset_by_id("hijack") is None

    def test_update_invalid_or_missing(self, library, custom_preset):
        assert not library.update_preset(custom_preset.id, {"category": "nonsense"})
        assert not library.update_preset("missing", {"name": "x"})

    def test_delete(self, library, custom_preset):
        assert library.delete_preset(custom_preset.id)
        assert library.get_preset_by_id(custom_preset.id) is None
        assert not library.delete_preset(custom_preset.id)


class TestImportExport:
    """Tests for preset exchange."""

    def test_export_json_custom_only(self, library, custom_preset):
        data = json.loads(library.export_presets(PresetFileFormat.JSON))
        assert [entry["id"] for entry in data] == [custom_preset.id]
        assert data[0]["adjustments"] == {"contrast": 40.0, "vibrance": 10.0}
        assert "createdDate" in data[0]

    def test_export_yaml(self, library, custom_preset):
        data = yaml.safe_load(library.export_presets(PresetFileFormat.YAML))
        assert data[0]["name"] == "My Look"

    def test_round_trip_assigns_new_ids(self, library, custom_preset):
        exported = library.export_presets()
        other = PresetLibrary(settings=PresetSettings())
        assert other.import_presets(exported) == 1
        imported = [p for p in other.get_all_presets() if p.is_custom][0]
        assert imported.id != custom_preset.id
        assert imported.adjustments.contrast == 40

    def test_import_skips_incomplete_entries(self, library):
        text = json.dumps(
            [
                {"name": "Good", "category": "street", "adjustments": {"clarity": 5}},
                {"name": "No category", "adjustments": {"clarity": 5}},
                {"name": "Bad category", "category": "nope", "adjustments": {"clarity": 5}},
                {"category": "street", "adjustments": {"clarity": 5}},
            ]
        )
        assert library.import_presets(text) == 1

    def test_import_single_mapping_yaml(self, library):
        text = "name: Solo\ncategory: artistic\nadjustments:\n  vignette: 20\n"
        assert library.import_presets(text) == 1

    def test_import_from_file(self, library, tmp_path):
        path = tmp_path / "presets.yaml"
        path.write_text(
            yaml.dump([{"name": "F", "category": "portrait", "adjustments": {"tint": 3}}])
        )
        assert library.import_presets(path) == 1

    def test_import_parse_error(self, library):
        with pytest.raises(PresetImportError):
            library.import_presets("[not json")

    def test_import_non_list(self, library):
        with pytest.raises(PresetImportError):
            library.import_presets("42")


class TestPersistence:
    def test_custom_presets_survive_reload(self, tmp_path):
        path = tmp_path / "custom.json"
        library = PresetLibrary(presets_file=path)
        preset = library.create_custom_preset("Kept", "", "vintage", {"clarity": -10})

        reloaded = PresetLibrary(presets_file=path)
        assert reloaded.get_preset_by_id(preset.id).name == "Kept"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "custom.yml"
        library = PresetLibrary(presets_file=path)
        library.create_custom_preset("Y", "", "street", {"dehaze": 5})
        assert yaml.safe_load(path.read_text())[0]["name"] == "Y"

    def test_to_dict_uses_camel_case(self):
        preset = Preset(
            id="custom-1",
            name="C",
            category="modern",
            adjustments={"noiseReduction": 20},
            thumbnail_path="t.jpg",
        )
        data = preset.to_dict()
        assert data["thumbnailPath"] == "t.jpg"
        assert data["adjustments"] == {"noiseReduction": 20.0}
