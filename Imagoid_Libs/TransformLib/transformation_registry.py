"""
Transformation Registry.

Maps transformation type names to factories so transformations can be
stored as plain dicts and rebuilt later:

    {"type": "resize", "params": {"width": 200, "height": 100, "mode": "crop"}}

Classes:
    TransformationRegistry: Registry of transformation factories

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_factories: Register the built-in transformations
    build_transformation: Build a transformation from a dict with the default registry
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from Imagoid_Libs.constants import (
    FIELD_PARAMS,
    FIELD_TYPE,
    TRANSFORMATION_ALPHA,
    TRANSFORMATION_CHAIN,
    TRANSFORMATION_PASTE,
    TRANSFORMATION_RESIZE,
)
from Imagoid_Libs.TransformLib.alpha_transformation import AlphaTransformation
from Imagoid_Libs.TransformLib.paste_transformation import PasteTransformation
from Imagoid_Libs.TransformLib.resize_transformation import ResizeTransformation
from Imagoid_Libs.TransformLib.transformation import Transformation
from Imagoid_Libs.TransformLib.transformation_chain import TransformationChain

logger = logging.getLogger(__name__)

# Factory receives the "params" dict and the registry (for nested configs)
TransformationFactory = Callable[[Dict[str, Any], "TransformationRegistry"], Transformation]


class TransformationRegistry:
    """
    Registry of transformation factories.

    Example:
        >>> registry = TransformationRegistry()
        >>> registry.register("resize", build_resize)
        >>> transformation = registry.build({"type": "resize", "params": {"width": 100}})
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._factories: Dict[str, TransformationFactory] = {}
        self._descriptions: Dict[str, str] = {}

    def register(self, type_name: str, factory: TransformationFactory, description: str = "") -> None:
        """
        Register a transformation factory.

        Args:
            type_name: Unique identifier for the transformation type (e.g., "resize")
            factory: Callable accepting (params, registry) and returning a Transformation
            description: Human-readable description

        Raises:
            ValueError: If type_name is empty or factory is not callable
            RuntimeError: If type_name is already registered
        """
        type_name = str(type_name).strip().lower()

        if not type_name:
            raise ValueError("type_name cannot be empty")

        if not callable(factory):
            raise ValueError(f"factory must be callable, got {type(factory)}")

        if type_name in self._factories:
            raise RuntimeError(
                f"Transformation type '{type_name}' is already registered. "
                f"Use unregister() first to replace it."
            )

        self._factories[type_name] = factory
        self._descriptions[type_name] = str(description)
        logger.debug(f"Registered factory for transformation type: {type_name}")

    def unregister(self, type_name: str) -> bool:
        """
        Unregister a transformation factory.

        Returns:
            True if unregistered, False if type_name was not registered
        """
        type_name = str(type_name).strip().lower()
        if type_name in self._factories:
            del self._factories[type_name]
            del self._descriptions[type_name]
            logger.debug(f"Unregistered factory for transformation type: {type_name}")
            return True
        return False

    def get_factory(self, type_name: str) -> TransformationFactory:
        """
        Get the factory for a transformation type.

        Raises:
            KeyError: If type_name is not registered
        """
        type_name = str(type_name).strip().lower()
        if type_name not in self._factories:
            available = ", ".join(self.list_types())
            raise KeyError(
                f"No factory registered for transformation type '{type_name}'. "
                f"Available types: {available}"
            )
        return self._factories[type_name]

    def has_type(self, type_name: str) -> bool:
        return str(type_name).strip().lower() in self._factories

    def list_types(self) -> List[str]:
        """Sorted list of registered type names."""
        return sorted(self._factories.keys())

    def get_description(self, type_name: str) -> str:
        type_name = str(type_name).strip().lower()
        if type_name not in self._descriptions:
            raise KeyError(f"No description for transformation type: {type_name}")
        return self._descriptions[type_name]

    def build(self, config: Dict[str, Any]) -> Transformation:
        """
        Build a transformation from {"type": ..., "params": {...}}.

        Args:
            config: Dict as produced by Transformation.to_dict()

        Returns:
            New transformation

        Raises:
            ValueError: If config has no type
            KeyError: If the type is not registered
        """
        if not isinstance(config, dict) or not config.get(FIELD_TYPE):
            raise ValueError(f"Transformation config must be a dict with a '{FIELD_TYPE}' field, got {config!r}")
        factory = self.get_factory(config[FIELD_TYPE])
        return factory(dict(config.get(FIELD_PARAMS) or {}), self)

    def build_all(self, configs: List[Dict[str, Any]]) -> List[Transformation]:
        return [self.build(config) for config in configs]

    def clear(self) -> None:
        """Clear all registered factories. Use with caution."""
        self._factories.clear()
        self._descriptions.clear()
        logger.warning("Transformation registry cleared")


def build_resize(params: Dict[str, Any], registry: TransformationRegistry) -> Transformation:
    return ResizeTransformation(**params)


def build_alpha(params: Dict[str, Any], registry: TransformationRegistry) -> Transformation:
    return AlphaTransformation(**params)


def build_paste(params: Dict[str, Any], registry: TransformationRegistry) -> Transformation:
    """Paste params: image, x, y, mode_x, mode_y, width, height, size_mode, alpha, transformations."""
    paste = PasteTransformation()
    if params.get("image") is not None:
        paste.set_image(params["image"])
    paste.set_position(
        params.get("x", "50%"),
        params.get("y", "50%"),
        params.get("mode_x", "center"),
        params.get("mode_y", "center"),
    )
    paste.set_size(params.get("width"), params.get("height"), params.get("size_mode", "fit"))
    paste.set_alpha(params.get("alpha", 1))
    for config in params.get("transformations") or []:
        paste.add_transformation(registry.build(config))
    return paste


def build_chain(params: Dict[str, Any], registry: TransformationRegistry) -> Transformation:
    return TransformationChain(registry.build_all(params.get("transformations") or []))


# Global singleton registry
_default_registry: Optional[TransformationRegistry] = None


def get_default_registry() -> TransformationRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers the built-in transformations.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = TransformationRegistry()
        register_default_factories(_default_registry)

    return _default_registry


def register_default_factories(registry: TransformationRegistry) -> None:
    """Register resize, alpha, paste and chain."""
    registry.register(TRANSFORMATION_RESIZE, build_resize, "Resize with fit, fill, crop, stretch or exact mode")
    registry.register(TRANSFORMATION_ALPHA, build_alpha, "Change opacity")
    registry.register(TRANSFORMATION_PASTE, build_paste, "Paste another image, e.g. a watermark")
    registry.register(TRANSFORMATION_CHAIN, build_chain, "Apply transformations in sequence")
    logger.debug("Registered default transformation factories")


def build_transformation(config: Dict[str, Any]) -> Transformation:
    """Build a transformation from a dict config with the default registry."""
    return get_default_registry().build(config)
