"""Point-in-time context snapshots attached to every log entry."""

import platform
import threading
from collections.abc import Callable
from typing import Any

Accessor = Callable[[], Any]


def _current_thread_name() -> str:
    return threading.current_thread().name


class ContextBuilder:
    """Assembles ambient runtime facts into one mapping per entry.

    The builder performs no I/O of its own. It calls small accessor
    functions supplied by the host environment and collects their results.
    An accessor that raises is left out of that snapshot; it never aborts
    entry construction.

    Example:
        ```python
        builder = ContextBuilder.with_defaults(app_version="2.1.0")
        builder.register("current_screen", router.current_name)
        builder.build()
        ```
    """

    def __init__(self, accessors: dict[str, Accessor] | None = None) -> None:
        self._accessors: dict[str, Accessor] = dict(accessors or {})
        self._lock = threading.Lock()

    @classmethod
    def with_defaults(
        cls, app_version: str = "0.0.0", build_number: str = "0"
    ) -> "ContextBuilder":
        """Create a builder pre-loaded with app, platform and thread facts."""
        system = platform.system() or "unknown"
        release = platform.release() or "unknown"
        return cls(
            {
                "app_version": lambda: app_version,
                "build_number": lambda: build_number,
                "platform": lambda: system,
                "platform_version": lambda: release,
                "thread_id": _current_thread_name,
            }
        )

    def register(self, name: str, accessor: Accessor) -> None:
        """Add or replace the accessor for a context field."""
        with self._lock:
            self._accessors[name] = accessor

    def unregister(self, name: str) -> None:
        """Remove a context field. Unknown names are ignored."""
        with self._lock:
            self._accessors.pop(name, None)

    @property
    def fields(self) -> tuple[str, ...]:
        """Names of the registered context fields."""
        return tuple(self._accessors)

    def get(self, name: str, default: Any = None) -> Any:
        """Evaluate a single accessor, returning default if absent or failing."""
        accessor = self._accessors.get(name)
        if accessor is None:
            return default
        try:
            return accessor()
        except Exception:
            return default

    def build(self) -> dict[str, Any]:
        """Evaluate every accessor and return the snapshot."""
        with self._lock:
            accessors = list(self._accessors.items())
        context: dict[str, Any] = {}
        for name, accessor in accessors:
            try:
                context[name] = accessor()
            except Exception:  # noqa: S112
                continue
        return context
