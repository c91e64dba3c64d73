"""
Studio modules: prompt templates bound to a model and an image-slot count.

Definitions are validated when constructed, so a module with a bad model
name or mismatched slot labels never reaches the workspace.
"""

from __future__ import annotations

import json
import logging
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from nova.storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

MODULES_KEY = "nova_modules"


class ModelType(StrEnum):
    GEMINI_3_PRO = "gemini-3-pro-preview"  # text and reasoning
    GEMINI_3_PRO_IMAGE = "gemini-3-pro-image-preview"  # high fidelity rendering
    GEMINI_2_5_FLASH_IMAGE = "gemini-2.5-flash-image"  # fast editing


class ModuleValidationError(ValueError):
    pass


class ModuleConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, protected_namespaces=())

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    model: ModelType
    input_count: Literal[1, 2]
    system_instruction: str = Field(min_length=1)
    icon: str = ""
    description: str = ""
    input_labels: tuple[str, ...] = ()
    default_prompt: str | None = None

    @model_validator(mode="after")
    def _labels_match_slots(self) -> ModuleConfig:
        if self.input_labels and len(self.input_labels) != self.input_count:
            raise ValueError(
                f"module {self.id!r} has {self.input_count} input slots "
                f"but {len(self.input_labels)} labels"
            )
        return self


def build_module(**fields: Any) -> ModuleConfig:
    try:
        return ModuleConfig(**fields)
    except ValidationError as e:
        raise ModuleValidationError(str(e)) from e


DEFAULT_MODULES: tuple[ModuleConfig, ...] = (
    ModuleConfig(
        id="concept_design",
        name="Concept design",
        icon="🎨",
        description="Blend a style reference and a form reference into a new product concept.",
        model=ModelType.GEMINI_3_PRO_IMAGE,
        input_count=2,
        input_labels=("Material and style reference", "Product form reference"),
        system_instruction=(
            "You are a pioneering industrial designer. Analyse the material and style of the "
            "first image and the product form of the second. Transfer the style of the first "
            "image onto the structure of the second and produce a high quality, realistic "
            "product render with consistent perspective and lighting."
        ),
    ),
    ModuleConfig(
        id="sketch_render",
        name="Sketch render",
        icon="✏️",
        description="Turn a hand-drawn sketch into a photorealistic product render.",
        model=ModelType.GEMINI_3_PRO_IMAGE,
        input_count=1,
        input_labels=("Hand-drawn sketch",),
        system_instruction=(
            "You are an industrial designer skilled at rendering. The user provides a line "
            "sketch. Render it as a photorealistic product image following the prompt's "
            "materials, colours and finishes. Keep the original line structure while adding "
            "real volume, light and shadow."
        ),
    ),
    ModuleConfig(
        id="variant_gen",
        name="Variant generation",
        icon="✨",
        description="CMF variants and detail tweaks on an existing product image.",
        model=ModelType.GEMINI_2_5_FLASH_IMAGE,
        input_count=1,
        input_labels=("Original render",),
        system_instruction=(
            "You are a product CMF expert. Edit the uploaded image strictly as instructed. "
            "Change only the areas or attributes the user names (colour, material, "
            "background) and leave everything else untouched. Output a high quality image."
        ),
    ),
    ModuleConfig(
        id="scene_comp",
        name="Scene composition",
        icon="🏞️",
        description="Place a product into a scene for marketing-grade imagery.",
        model=ModelType.GEMINI_3_PRO_IMAGE,
        input_count=2,
        input_labels=("Product on white", "Scene or background reference"),
        system_instruction=(
            "You are a professional advertising compositor. Blend the product naturally into "
            "the scene, matching its lighting, tone and perspective to the background. The "
            "product should be the visual focus."
        ),
    ),
    ModuleConfig(
        id="ecommerce_detail",
        name="E-commerce detail page",
        icon="🛍️",
        description="Generate a detail-page visual that showcases selling points.",
        model=ModelType.GEMINI_3_PRO_IMAGE,
        input_count=1,
        input_labels=("Main product image",),
        system_instruction=(
            "You are a senior e-commerce designer. Design an attractive detail-page poster "
            "from the uploaded product image. Pick out its key visual features and pair them "
            "with a clean, premium background suited to high-end consumer electronics."
        ),
    ),
)


class ModuleRegistry:
    """Module definitions, persisted once an admin edits one."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def list(self) -> list[ModuleConfig]:
        raw = self.store.get(MODULES_KEY)
        if not raw:
            return [*DEFAULT_MODULES]
        try:
            return [ModuleConfig.model_validate(m) for m in json.loads(raw)]
        except (ValueError, TypeError) as e:
            raise StorageError(
                f"Module definitions under {MODULES_KEY!r} are unreadable: {e}"
            ) from e

    def get(self, module_id: str) -> ModuleConfig:
        """Look up a module; unknown ids fall back to the first one."""
        modules = self.list()
        for module in modules:
            if module.id == module_id:
                return module
        return modules[0]

    def update(self, module_id: str, **changes: Any) -> ModuleConfig:
        """Apply changes to one module and persist the whole set."""
        if "id" in changes and changes["id"] != module_id:
            raise ModuleValidationError("module id cannot be changed")
        modules = self.list()
        for i, module in enumerate(modules):
            if module.id == module_id:
                updated = build_module(**{**module.model_dump(), **changes})
                modules[i] = updated
                break
        else:
            raise KeyError(module_id)

        payload = [m.model_dump(mode="json") for m in modules]
        self.store.set(MODULES_KEY, json.dumps(payload, ensure_ascii=False))
        logger.info("Updated module %s (%s)", module_id, ", ".join(sorted(changes)))
        return updated

    def reset(self) -> None:
        """Drop edits and go back to the built-in modules."""
        self.store.delete(MODULES_KEY)
