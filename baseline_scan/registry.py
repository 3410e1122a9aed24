"""Feature-support registry backed by web-features ``data.json``."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Protocol

BUNDLED_DATA = "web-features.json"
WIDELY_AVAILABLE = "high"
MAX_REDIRECTS = 5


class RegistryError(ValueError):
    """Raised when registry data cannot be loaded."""


class SupportRegistry(Protocol):
    """Anything able to report a feature's Baseline tier."""

    def baseline_tier(self, feature_key: str) -> str | None:
        """Return "high", "low" or None when unknown or not Baseline."""


class FeatureRegistry:
    """Lookup over a web-features feature mapping."""

    def __init__(self, features: dict[str, Any], *, source: str | None = None) -> None:
        self._features = features
        self.source = source

    def __contains__(self, feature_key: object) -> bool:
        return feature_key in self._features

    def __len__(self) -> int:
        return len(self._features)

    @classmethod
    def from_mapping(cls, data: dict[str, Any], *, source: str | None = None) -> FeatureRegistry:
        """Accept either a full ``data.json`` document or a bare feature mapping."""
        if not isinstance(data, dict):
            raise RegistryError("Registry data must be a JSON object")
        features = data.get("features", data)
        if not isinstance(features, dict):
            raise RegistryError("Registry 'features' must be a JSON object")
        return cls(features, source=source)

    @classmethod
    def from_path(cls, path: Path) -> FeatureRegistry:
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise RegistryError(f"Cannot read registry file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise RegistryError(f"Invalid JSON in registry file {path}: {exc}") from exc
        return cls.from_mapping(loaded, source=str(path))

    @classmethod
    def bundled(cls) -> FeatureRegistry:
        """Load the snapshot shipped with the package."""
        resource = resources.files("baseline_scan").joinpath("data", BUNDLED_DATA)
        loaded = json.loads(resource.read_text(encoding="utf-8"))
        return cls.from_mapping(loaded, source=f"bundled:{BUNDLED_DATA}")

    def lookup(self, feature_key: str) -> dict[str, Any] | None:
        """Return the feature entry, following ``moved`` redirects."""
        key = feature_key
        for _ in range(MAX_REDIRECTS):
            entry = self._features.get(key)
            if not isinstance(entry, dict):
                return None
            if entry.get("kind") != "moved":
                return entry
            target = entry.get("redirect_target")
            if not isinstance(target, str):
                return None
            key = target
        return None

    def baseline_tier(self, feature_key: str) -> str | None:
        entry = self.lookup(feature_key)
        if entry is None:
            return None
        status = entry.get("status")
        if not isinstance(status, dict):
            return None
        tier = status.get("baseline")
        return tier if isinstance(tier, str) else None


def load_registry(path: Path | None = None) -> FeatureRegistry:
    """Load registry data from ``path``, or the bundled snapshot."""
    if path is None:
        return FeatureRegistry.bundled()
    return FeatureRegistry.from_path(path)
