from typing import Any, Callable, Dict, Type, TypeVar

T = TypeVar("T")


class Registry:
    """A registry for storing and retrieving classes by identity."""

    def __init__(self, name: str):
        """
        Initializes the registry.

        Args:
            name: The name of the registry (e.g., "provider").
        """
        self._name = name
        self._components: Dict[str, Type[Any]] = {}

    def register(self, name: str) -> Callable[[Type[T]], Type[T]]:
        """
        A decorator to register a class under ``name``.

        Raises:
            ValueError: If the name is already registered.
        """
        def decorator(cls: Type[T]) -> Type[T]:
            if name in self._components:
                raise ValueError(f"'{name}' is already registered in the {self._name} registry.")
            self._components[name] = cls
            return cls
        return decorator

    def get(self, name: str) -> Type[Any]:
        """
        Raises:
            KeyError: If the name is not registered.
        """
        if name not in self._components:
            raise KeyError(f"'{name}' not found in the {self._name} registry.")
        return self._components[name]

    def create(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Instantiates the class registered under ``name`` with the given arguments."""
        return self.get(name)(*args, **kwargs)

    def __contains__(self, name: str) -> bool:
        return name in self._components

    def __iter__(self):
        return iter(self._components)

    def keys(self):
        return self._components.keys()


provider_registry = Registry("provider")
