"""Tests for nova.modules: module definitions."""

import json

import pytest
from pydantic import ValidationError

from nova.modules import (
    DEFAULT_MODULES,
    MODULES_KEY,
    ModelType,
    ModuleConfig,
    ModuleRegistry,
    ModuleValidationError,
    build_module,
)
from nova.storage.base import StorageError


@pytest.fixture
def registry(store):
    return ModuleRegistry(store)


VALID = {
    "id": "test",
    "name": "Test",
    "model": "gemini-3-pro-image-preview",
    "input_count": 2,
    "system_instruction": "Do the thing.",
}


class TestModuleConfig:
    def test_builds(self):
        module = build_module(**VALID)
        assert module.model is ModelType.GEMINI_3_PRO_IMAGE
        assert module.input_labels == ()

    @pytest.mark.parametrize("field", ["id", "name", "model", "input_count", "system_instruction"])
    def test_required_fields(self, field):
        fields = {k: v for k, v in VALID.items() if k != field}
        with pytest.raises(ModuleValidationError):
            build_module(**fields)

    def test_unknown_model(self):
        with pytest.raises(ModuleValidationError):
            build_module(**{**VALID, "model": "gpt-4"})

    @pytest.mark.parametrize("count", [0, 3])
    def test_input_count_bounds(self, count):
        with pytest.raises(ModuleValidationError):
            build_module(**{**VALID, "input_count": count})

    def test_labels_must_match_slots(self):
        with pytest.raises(ModuleValidationError, match="labels"):
            build_module(**{**VALID, "input_labels": ["only one"]})

    def test_extra_fields_rejected(self):
        with pytest.raises(ModuleValidationError):
            build_module(**{**VALID, "temperature": 0.3})

    def test_defaults_are_valid(self):
        assert len(DEFAULT_MODULES) == 5
        assert len({m.id for m in DEFAULT_MODULES}) == 5
        for module in DEFAULT_MODULES:
            assert len(module.input_labels) == module.input_count


class TestRegistry:
    def test_defaults_without_storage(self, registry, store):
        assert [m.id for m in registry.list()] == [m.id for m in DEFAULT_MODULES]
        assert store.keys() == []

    def test_get_unknown_falls_back_to_first(self, registry):
        assert registry.get("nope").id == DEFAULT_MODULES[0].id

    def test_update_persists(self, registry, store):
        updated = registry.update(
            "sketch_render", name="Sketch to render", default_prompt="matte black"
        )
        assert updated.name == "Sketch to render"
        assert registry.get("sketch_render").default_prompt == "matte black"
        stored = json.loads(store.get(MODULES_KEY))
        assert [m["id"] for m in stored] == [m.id for m in DEFAULT_MODULES]

    def test_update_other_modules_untouched(self, registry):
        registry.update("sketch_render", name="Renamed")
        assert registry.get("concept_design") == DEFAULT_MODULES[0]

    def test_update_validates(self, registry, store):
        with pytest.raises(ModuleValidationError):
            registry.update("sketch_render", model="dall-e")
        assert store.get(MODULES_KEY) is None

    def test_update_cannot_change_id(self, registry):
        with pytest.raises(ModuleValidationError):
            registry.update("sketch_render", id="other")

    def test_update_unknown(self, registry):
        with pytest.raises(KeyError):
            registry.update("ghost", name="x")

    def test_reset(self, registry):
        registry.update("sketch_render", name="Renamed")
        registry.reset()
        assert registry.get("sketch_render").name == "Sketch render"

    def test_unreadable_storage(self, registry, store):
        store.set(MODULES_KEY, "[{\"id\": 1}]")
        with pytest.raises(StorageError):
            registry.list()

    def test_model_is_frozen(self):
        with pytest.raises(ValidationError):
            ModuleConfig.model_validate(VALID).name = "x"
