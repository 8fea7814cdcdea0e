"""Service backend detection and factory."""

import importlib

from servicekit.config.models import ServiceConfig
from servicekit.service.base import Program, ServiceBackend
from servicekit.service.errors import UnsupportedFeatureError

# Probed in order; the first available backend wins.
BACKENDS = {
    "runit": "servicekit.service.backends.runit.RunitService",
}


def _backend_class(name: str) -> type[ServiceBackend]:
    # Import dynamically to avoid loading unnecessary backends
    module_path, class_name = BACKENDS[name].rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def detect_backend(program: Program, config: ServiceConfig) -> ServiceBackend:
    """Instantiate the first backend whose supervisor is present.

    Raises:
        UnsupportedFeatureError: If no supported supervisor is found.
    """
    for name in BACKENDS:
        backend_class = _backend_class(name)
        if backend_class.is_available():
            return backend_class(program, config)

    raise UnsupportedFeatureError(
        f"No supported service manager found. Tried: {', '.join(BACKENDS)}"
    )


def get_backend(
    name: str | None, program: Program, config: ServiceConfig
) -> ServiceBackend:
    """Get a specific backend by name, or auto-detect.

    Args:
        name: Backend name ('runit') or None for auto.
        program: Program hooks for foreground runs.
        config: Service description.

    Raises:
        ValueError: If the named backend doesn't exist.
    """
    if name is None:
        return detect_backend(program, config)

    if name not in BACKENDS:
        raise ValueError(f"Unknown backend: {name}. Available: {list(BACKENDS)}")

    return _backend_class(name)(program, config)


__all__ = ["BACKENDS", "detect_backend", "get_backend"]
