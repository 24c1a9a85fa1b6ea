"""
Component registry for the distant-supervision pipeline.

Loaders, annotation services, candidate lookups and relation stores are
registered by name so a JSON config can pick the implementation and pass
its parameters. ``create`` checks those parameters against the factory
signature, so a config typo fails naming the component instead of deep
inside its constructor.
"""

import inspect
from typing import Any, Callable, Dict, TypeVar

T = TypeVar("T")


class ComponentRegistry:
    """Named component factories of one kind (e.g. "loader")."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._registry: Dict[str, Callable[..., Any]] = {}

    def register(self, name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
        def decorator(factory: Callable[..., T]) -> Callable[..., T]:
            if name in self._registry:
                raise ValueError(f"{self.kind.capitalize()} '{name}' already registered.")
            self._registry[name] = factory
            return factory

        return decorator

    def __contains__(self, name: str) -> bool:
        return name in self._registry

    def get(self, name: str) -> Callable[..., Any]:
        try:
            return self._registry[name]
        except KeyError as exc:
            known = ", ".join(sorted(self._registry)) or "none"
            raise KeyError(f"Unknown {self.kind} '{name}' (available: {known}).") from exc

    def create(self, name: str, **params: Any) -> Any:
        """Instantiate component ``name`` with config ``params``."""
        factory = self.get(name)
        try:
            signature = inspect.signature(factory)
        except ValueError:
            signature = None
        if signature is not None:
            try:
                signature.bind(**params)
            except TypeError as exc:
                raise ValueError(f"Invalid params for {self.kind} '{name}': {exc}") from exc
        return factory(**params)

    def available(self) -> Dict[str, Callable[..., Any]]:
        return dict(self._registry)


loaders = ComponentRegistry("loader")
annotators = ComponentRegistry("annotator")
candidate_lookups = ComponentRegistry("candidate lookup")
relation_stores = ComponentRegistry("relation store")
