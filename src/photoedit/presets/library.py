"""
Preset library: built-in and custom presets with JSON/YAML exchange.

Custom presets can optionally be persisted to a file (JSON or YAML by
suffix); the library loads it on construction and rewrites it after every
change to the custom set.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from photoedit.config import PresetFileFormat, PresetSettings, get_settings
from photoedit.core.exceptions import PresetImportError
from photoedit.core.logging import get_logger
from photoedit.core.models import AdjustmentPatch, AdjustmentSet, generate_id
from photoedit.core.types import PresetCategory
from photoedit.presets.builtin import BUILTIN_AUTHOR, BUILTIN_PRESETS
from photoedit.presets.models import CUSTOM_PREFIX, Preset
from photoedit.presets.resolver import PresetResolver

logger = get_logger(__name__)

CUSTOM_AUTHOR = "User"
YAML_SUFFIXES = (".yaml", ".yml")


class PresetLibrary:
    """
    Manages adjustment presets.

    Provides lookup by id and category, custom preset CRUD, preset
    application onto an AdjustmentSet, and import/export of custom presets.
    Built-in presets cannot be deleted.
    """

    def __init__(
        self,
        presets_file: Optional[Path] = None,
        settings: Optional[PresetSettings] = None,
    ):
        """
        Initialize the library with the built-in presets.

        Args:
            presets_file: File custom presets are loaded from and saved to.
                Defaults to the configured ``presets_file``; None keeps
                custom presets in memory only.
            settings: Preset settings. Defaults to the global settings.
        """
        self.settings = settings or get_settings().presets
        self.presets_file = presets_file or self.settings.presets_file
        self.resolver = PresetResolver()

        self._presets: list[Preset] = [
            Preset(author=BUILTIN_AUTHOR, **data) for data in BUILTIN_PRESETS
        ]
        if self.presets_file and Path(self.presets_file).exists():
            self._load()

    # --- Lookup --------------------------------------------------------------

    def get_all_presets(self) -> list[Preset]:
        return [p.model_copy(deep=True) for p in self._presets]

    def get_presets_by_category(self, category: Union[PresetCategory, str]) -> list[Preset]:
        category = PresetCategory(category)
        return [p.model_copy(deep=True) for p in self._presets if p.category == category]

    def get_preset_by_id(self, preset_id: str) -> Optional[Preset]:
        preset = self._find(preset_id)
        return preset.model_copy(deep=True) if preset else None

    def get_category_summary(self) -> list[dict[str, Any]]:
        """Preset count per category, in category order."""
        return [
            {
                "category": category.value,
                "count": sum(1 for p in self._presets if p.category == category),
            }
            for category in PresetCategory
        ]

    def _find(self, preset_id: str) -> Optional[Preset]:
        return next((p for p in self._presets if p.id == preset_id), None)

    # --- Custom presets -------------------------------------------------------

    def create_custom_preset(
        self,
        name: str,
        description: str,
        category: Union[PresetCategory, str],
        adjustments: Union[AdjustmentPatch, Mapping[str, Any]],
    ) -> Preset:
        """
        Create and store a custom preset.

        Returns:
            The created Preset (with a ``custom-`` id)
        """
        preset = Preset(
            id=generate_id(CUSTOM_PREFIX),
            name=name,
            description=description,
            category=category,
            adjustments=adjustments,
            author=CUSTOM_AUTHOR,
        )
        self._presets.append(preset)
        logger.info(f"Created preset {preset.id} ({preset.name})")
        self._save()
        return preset.model_copy(deep=True)

    def create_preset_from_adjustments(
        self,
        adjustments: AdjustmentSet,
        name: str,
        description: str,
        category: Union[PresetCategory, str],
    ) -> Preset:
        """Create a custom preset from the non-default fields of ``adjustments``."""
        return self.create_custom_preset(
            name, description, category, adjustments.non_default_patch()
        )

    def update_preset(self, preset_id: str, updates: Mapping[str, Any]) -> bool:
        """
        Update fields of a preset.

        The id cannot be changed. Returns False if the preset is not found
        or the updated preset would be invalid.
        """
        for index, preset in enumerate(self._presets):
            if preset.id != preset_id:
                continue
            data = preset.model_dump()
            data.update({k: v for k, v in updates.items() if k != "id"})
            try:
                self._presets[index] = Preset.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Rejected update of preset {preset_id}: {e}")
                return False
            if preset.is_custom:
                self._save()
            return True
        return False

    def delete_preset(self, preset_id: str) -> bool:
        """Delete a custom preset. Built-in presets are never deleted."""
        preset = self._find(preset_id)
        if preset is None or not preset.is_custom:
            return False
        self._presets.remove(preset)
        logger.info(f"Deleted preset {preset_id}")
        self._save()
        return True

    # --- Application ----------------------------------------------------------

    def apply_preset(self, current: AdjustmentSet, preset_id: str) -> AdjustmentSet:
        """Merge a preset onto ``current``; unknown ids return ``current`` unchanged."""
        preset = self._find(preset_id)
        if preset is None:
            return current
        return self.resolver.resolve(current, preset)

    # --- Import / export --------------------------------------------------------

    def export_presets(self, format: Optional[PresetFileFormat] = None) -> str:
        """
        Export custom presets to JSON or YAML.

        Args:
            format: Output format. Defaults to the configured export format.

        Returns:
            Serialized list of custom presets
        """
        fmt = PresetFileFormat(format or self.settings.export_format)
        data = [p.to_dict() for p in self._presets if p.is_custom]

        if fmt == PresetFileFormat.YAML:
            return yaml.dump(data, default_flow_style=False, sort_keys=False)
        return json.dumps(data, indent=2, default=str)

    def import_presets(self, source: Union[str, Path]) -> int:
        """
        Import presets from a JSON/YAML file or string.

        Imported presets receive new custom ids. Entries without a name,
        category or adjustments, or that fail validation, are skipped.

        Args:
            source: Path to a ``.json``/``.yaml``/``.yml`` file, or the
                serialized text itself

        Returns:
            Number of presets imported

        Raises:
            PresetImportError: If the source cannot be read or parsed
        """
        entries = self._parse(source)

        imported = 0
        for entry in entries:
            if not isinstance(entry, Mapping) or not all(
                entry.get(key) for key in ("name", "category", "adjustments")
            ):
                logger.warning("Skipping preset entry without name, category or adjustments")
                continue
            data = dict(entry)
            data.update(id=generate_id(CUSTOM_PREFIX), created_date=datetime.now())
            data.pop("createdDate", None)
            try:
                preset = Preset.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Skipping invalid preset {entry.get('name')!r}: {e}")
                continue
            self._presets.append(preset)
            imported += 1

        logger.info(f"Imported {imported} of {len(entries)} preset(s)")
        if imported:
            self._save()
        return imported

    @staticmethod
    def _parse(source: Union[str, Path]) -> list[Any]:
        path = Path(source) if isinstance(source, Path) else None
        if path is None and isinstance(source, str) and "\n" not in source:
            candidate = Path(source)
            if candidate.suffix.lower() in (".json",) + YAML_SUFFIXES and candidate.exists():
                path = candidate

        try:
            if path is not None:
                with open(path, encoding="utf-8") as f:
                    if path.suffix.lower() in YAML_SUFFIXES:
                        data = yaml.safe_load(f)
                    else:
                        data = json.load(f)
            elif source.lstrip().startswith(("[", "{")):
                data = json.loads(source)
            else:
                data = yaml.safe_load(source)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise PresetImportError(f"Unable to read presets: {e}", path=path) from e

        if isinstance(data, Mapping):
            return [data]
        if not isinstance(data, list):
            raise PresetImportError("Preset data must be a list of presets", path=path)
        return data

    # --- Persistence --------------------------------------------------------------

    def _load(self) -> None:
        path = Path(self.presets_file)
        for entry in self._parse(path):
            try:
                preset = Preset.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored preset in {path}: {e}")
                continue
            if preset.is_custom and self._find(preset.id) is None:
                self._presets.append(preset)
        logger.debug(f"Loaded custom presets from {path}")

    def _save(self) -> None:
        if not self.presets_file:
            return
        path = Path(self.presets_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = PresetFileFormat.YAML if path.suffix.lower() in YAML_SUFFIXES else PresetFileFormat.JSON
        path.write_text(self.export_presets(fmt), encoding="utf-8")
