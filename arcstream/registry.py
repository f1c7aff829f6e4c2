"""A registry of named factories that build configurable components."""

from __future__ import annotations

from typing import Any, Callable, Mapping

Creator = Callable[[int, str], Any]


class RegistryError(LookupError):
    """Raised when a component is unknown or cannot take its parameters."""


class InterfaceFactory:
    """Maps names to creators called with a concurrency and a group id."""

    def __init__(self) -> None:
        self.registry: dict[str, Creator] = {}

    def register(self, name: str, creator: Creator) -> None:
        self.registry[name] = creator

    def create(
        self,
        name: str,
        concurrency: int,
        group_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Build the component ``name``; non-empty ``params`` go to its ``config``."""
        try:
            creator = self.registry[name]
        except KeyError:
            raise RegistryError(f"interface name not found: {name}") from None

        component = creator(concurrency, group_id)
        if not params:
            return component

        configure = getattr(component, "config", None)
        if not callable(configure):
            raise RegistryError(f"interface not configurable: {name}")
        configure(dict(params))
        return component