from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class AppContext:
    """Naming context for the resources of one deployed distribution."""

    name: str
    env: str

    def prefix(self, name: str | None = None) -> str:
        """Get resource name prefix or prefixed name.

        Args:
            name: Optional name to prefix. If None, returns just the prefix with trailing dash.

        Returns:
            If name is None: "{app}-{env}-"
            If name provided: "{app}-{env}-{name}"
        """
        base = f"{self.name.lower()}-{self.env.lower()}-"
        return base if name is None else f"{base}{name}"


class _ContextStore:
    """Internal storage for the global app context."""

    _instance: ClassVar[AppContext | None] = None

    @classmethod
    def set(cls, context: AppContext) -> None:
        """Set the global context. Can only be called once."""
        if cls._instance is not None:
            raise RuntimeError("Context has already been initialized")
        cls._instance = context

    @classmethod
    def get(cls) -> AppContext:
        if cls._instance is None:
            raise RuntimeError(
                "edgeroute context not initialized. Call init_context() in your Pulumi "
                "program before creating components."
            )
        return cls._instance

    @classmethod
    def clear(cls) -> None:
        """Clear the context. Only used for testing."""
        cls._instance = None


def init_context(name: str, env: str) -> AppContext:
    ctx = AppContext(name=name, env=env)
    _ContextStore.set(ctx)
    return ctx


def context() -> AppContext:
    """Get the current app context.

    Raises:
        RuntimeError: If called before context is initialized.
    """
    return _ContextStore.get()
