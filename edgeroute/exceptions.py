from collections.abc import Iterable

from edgeroute.model import CacheBehavior, ConfigViolation


class ConfigError(ValueError):
    """Raised when a declared distribution fails load-time validation.

    Carries every violation found so all of them can be fixed in one pass.
    """

    def __init__(self, violations: Iterable[ConfigViolation]):
        self.violations = list(violations)
        lines = "\n".join(f"  - {violation}" for violation in self.violations)
        super().__init__(
            f"Invalid distribution configuration ({len(self.violations)} "
            f"error{'s' if len(self.violations) != 1 else ''}):\n{lines}"
        )

    @property
    def codes(self) -> list[str]:
        return [violation.code for violation in self.violations]


class RoutingError(Exception):
    """Base class for errors returned while routing a single request."""


class InvalidRequestError(RoutingError):
    """Raised when a request is malformed, e.g. it has no HTTP method."""


class MethodNotAllowedError(RoutingError):
    """Raised when the matched behavior does not allow the request's method."""

    def __init__(self, method: str, behavior: CacheBehavior):
        self.method = method
        self.behavior = behavior
        self.allowed_methods = behavior.allowed_methods
        pattern = behavior.path_pattern or "default behavior"
        super().__init__(
            f"Method '{method}' is not allowed for '{pattern}'. "
            f"Allowed methods: {', '.join(sorted(self.allowed_methods))}."
        )
