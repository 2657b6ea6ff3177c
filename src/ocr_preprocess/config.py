"""Preprocessing options, loaded from keyword arguments, mappings, or the environment."""

import dataclasses
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from ocr_preprocess.errors import InvalidOptions


class BinarizationMethod(str, Enum):
    MEAN = "mean"
    SAUVOLA = "sauvola"
    OTSU = "otsu"


class Morphology(str, Enum):
    OPEN = "open"
    CLOSE = "close"


ENV_PREFIX = "OCR_PREPROCESS_"

# Legacy boolean switches accepted by from_mapping().  Each one, when truthy,
# selects the paired field value.
LEGACY_FLAGS = {
    "sauvola": ("binarization_method", BinarizationMethod.SAUVOLA),
    "otsu": ("binarization_method", BinarizationMethod.OTSU),
    "morphOpen": ("morphology", Morphology.OPEN),
    "morphClose": ("morphology", Morphology.CLOSE),
}


@dataclass(frozen=True)
class PreprocessOptions:
    min_width: int = 1024
    min_height: int = 768
    adaptive_threshold: bool = True
    block_size: int = 15
    threshold_c: float = 8.0
    contrast_enhancement: bool = True
    noise_reduction: bool = True
    deskew: bool = False
    binarization_method: BinarizationMethod = BinarizationMethod.MEAN
    sauvola_k: float = 0.3
    sharpen: bool = False
    morphology: Optional[Morphology] = None
    tile_grid: Tuple[int, int] = (8, 8)
    clip_limit: float = 40.0
    sharpen_radius: int = 1
    sharpen_amount: float = 1.0
    # Search window for skew detection.  These are tuning parameters, not a
    # guaranteed bound: documents skewed by more than skew_range are not
    # corrected.
    skew_range: float = 5.0
    skew_step: float = 0.5
    skew_tolerance: float = 0.3

    def __post_init__(self) -> None:
        # Normalise enum-valued fields so plain strings are accepted.
        try:
            object.__setattr__(
                self, "binarization_method", BinarizationMethod(self.binarization_method)
            )
            if self.morphology is not None:
                object.__setattr__(self, "morphology", Morphology(self.morphology))
        except ValueError as e:
            raise InvalidOptions(str(e)) from e
        object.__setattr__(self, "tile_grid", tuple(self.tile_grid))

        if self.min_width <= 0 or self.min_height <= 0:
            raise InvalidOptions(
                f"min_width and min_height must be positive, got "
                f"{self.min_width}x{self.min_height}"
            )
        if self.block_size <= 0 or self.block_size % 2 == 0:
            raise InvalidOptions(f"block_size must be a positive odd integer, got {self.block_size}")
        if len(self.tile_grid) != 2 or min(self.tile_grid) <= 0:
            raise InvalidOptions(f"tile_grid must be two positive integers, got {self.tile_grid}")
        if self.clip_limit <= 0:
            raise InvalidOptions(f"clip_limit must be positive, got {self.clip_limit}")
        if self.sharpen_radius < 1:
            raise InvalidOptions(f"sharpen_radius must be at least 1, got {self.sharpen_radius}")
        if self.skew_step <= 0 or self.skew_range < 0:
            raise InvalidOptions(
                f"skew_step must be positive and skew_range non-negative, got "
                f"step={self.skew_step} range={self.skew_range}"
            )

    @property
    def passthrough(self) -> bool:
        """True when no pixel stage is enabled and the decoded image is encoded as is."""
        return not (
            self.adaptive_threshold
            or self.contrast_enhancement
            or self.noise_reduction
            or self.deskew
            or self.sharpen
        )

    def replace(self, **changes: Any) -> "PreprocessOptions":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]] = None) -> "PreprocessOptions":
        """Merge a partial mapping over the defaults.

        Keys may be snake_case field names or their camelCase equivalents
        (``minWidth``, ``blockSize``...).  The legacy switches ``sauvola``,
        ``otsu``, ``morphOpen`` and ``morphClose`` are also understood.
        """
        names = _field_names()
        values: dict = {}
        for key, value in (mapping or {}).items():
            if key in LEGACY_FLAGS:
                if value:
                    field, selected = LEGACY_FLAGS[key]
                    values[field] = selected
                continue
            name = _snake_case(key)
            if name not in names:
                raise InvalidOptions(f"Unknown preprocessing option: {key}")
            values[name] = value
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "PreprocessOptions":
        """Read ``OCR_PREPROCESS_<FIELD>`` variables; explicit overrides win."""
        environ = os.environ if environ is None else environ
        values: dict = {}
        for field in dataclasses.fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw == "":
                continue
            values[field.name] = _parse_env_value(field.name, raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _field_names() -> set:
    return {f.name for f in dataclasses.fields(PreprocessOptions)}


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_env_value(name: str, raw: str) -> Any:
    default = getattr(PreprocessOptions, name, None)
    text = raw.strip()
    try:
        if name == "morphology":
            return None if text.lower() in ("", "none") else Morphology(text.lower())
        if name == "binarization_method":
            return BinarizationMethod(text.lower())
        if name == "tile_grid":
            x, y = re.split(r"[x,]", text.lower())
            return (int(x), int(y))
        if isinstance(default, bool):
            if text.lower() in _TRUE:
                return True
            if text.lower() in _FALSE:
                return False
            raise ValueError(f"not a boolean: {raw!r}")
        if isinstance(default, int):
            return int(text)
        return float(text)
    except ValueError as e:
        raise InvalidOptions(f"{ENV_PREFIX}{name.upper()}: {e}") from e
