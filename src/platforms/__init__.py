"""Platform adapter registry with lazy loading.

Usage:
    from src.platforms import get_adapter

    async with get_adapter("linkedin", settings) as adapter:
        records = await adapter.search(filters, max_count=25)
"""

import importlib

from src.core.config import Settings
from src.platforms.base import PlatformAdapter

__all__ = ["PlatformAdapter", "get_adapter", "is_supported", "supported_platforms"]

# Lazy registry: maps platform name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "linkedin": ("src.pipeline.engine", "JobAcquisitionEngine"),
}


def get_adapter(name: str, settings: Settings) -> PlatformAdapter:
    """Instantiate the adapter registered for ``name``.

    Raises:
        ValueError: If the platform name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(supported_platforms())
        msg = f"Unsupported platform: {name}. Supported platforms: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(settings)  # type: ignore[no-any-return]


def supported_platforms() -> list[str]:
    """Return sorted list of registered platform names."""
    return sorted(_REGISTRY)


def is_supported(name: str) -> bool:
    return name in _REGISTRY
