from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, NamedTuple, final

# https://www.pulumi.com/registry/packages/aws/api-docs/cloudfront/distribution/#inputs
CookiePolicy = Literal["none", "all", "allowList"]
ViewerProtocolPolicy = Literal["allow-all", "redirect-to-https", "https-only"]

COOKIE_POLICIES: tuple[CookiePolicy, ...] = ("none", "all", "allowList")
VIEWER_PROTOCOL_POLICIES: tuple[ViewerProtocolPolicy, ...] = (
    "allow-all",
    "redirect-to-https",
    "https-only",
)
HTTP_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "POST", "PATCH", "DELETE"})
READ_ONLY_METHODS = frozenset({"GET", "HEAD"})

DEFAULT_MIN_TTL = 0
DEFAULT_DEFAULT_TTL = 86400  # 1 day
DEFAULT_MAX_TTL = 31536000  # 1 year


@final
@dataclass(frozen=True, kw_only=True)
class OriginRule:
    """A backing content source the distribution can forward requests to."""

    id: str
    domain: str
    access_control_ref: str | None = None


@final
@dataclass(frozen=True, kw_only=True)
class Ttl:
    min: int = DEFAULT_MIN_TTL
    default: int = DEFAULT_DEFAULT_TTL
    max: int = DEFAULT_MAX_TTL

    @classmethod
    def fixed(cls, seconds: int) -> "Ttl":
        return cls(min=seconds, default=seconds, max=seconds)


@final
@dataclass(frozen=True, kw_only=True)
class Forwarding:
    query_string: bool = False
    cookie_policy: CookiePolicy = "none"
    cookie_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.cookie_names, str):
            raise TypeError("cookie_names must be a sequence of cookie names, not a string")
        object.__setattr__(self, "cookie_names", tuple(self.cookie_names))


def _method_set(methods: Iterable[str]) -> frozenset[str]:
    if isinstance(methods, str):
        raise TypeError("HTTP methods must be given as a collection, not a single string")
    return frozenset(methods)


@final
@dataclass(frozen=True, kw_only=True)
class CacheBehavior:
    """A rule pairing a path pattern with an origin and a caching policy.

    A behavior without ``path_pattern`` is the default behavior. Ordered
    behaviors are evaluated by ascending ``precedence``.
    """

    target_origin_id: str
    path_pattern: str | None = None
    precedence: int | None = None
    allowed_methods: frozenset[str] = READ_ONLY_METHODS
    cached_methods: frozenset[str] = READ_ONLY_METHODS
    ttl: Ttl = field(default_factory=Ttl)
    forwarding: Forwarding = field(default_factory=Forwarding)
    viewer_protocol_policy: ViewerProtocolPolicy = "redirect-to-https"
    compress: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_methods", _method_set(self.allowed_methods))
        object.__setattr__(self, "cached_methods", _method_set(self.cached_methods))

    @property
    def is_default(self) -> bool:
        return self.path_pattern is None


@final
@dataclass(frozen=True)
class DistributionConfig:
    """Validated, read-only routing configuration.

    Instances are produced by ``ConfigValidator.validate``; ``ordered_behaviors``
    is already sorted by ascending precedence.
    """

    origins: Mapping[str, OriginRule]
    default_behavior: CacheBehavior
    ordered_behaviors: tuple[CacheBehavior, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "origins", MappingProxyType(dict(self.origins)))
        object.__setattr__(self, "ordered_behaviors", tuple(self.ordered_behaviors))

    def origin_for(self, behavior: CacheBehavior) -> OriginRule:
        return self.origins[behavior.target_origin_id]

    def behaviors(self) -> Iterator[CacheBehavior]:
        """Default behavior first, then ordered behaviors in evaluation order."""
        yield self.default_behavior
        yield from self.ordered_behaviors


class RouteMatch(NamedTuple):
    origin: OriginRule
    behavior: CacheBehavior


ViolationCode = Literal[
    "default_behavior",
    "duplicate_precedence",
    "missing_precedence",
    "unknown_origin",
    "cached_methods",
    "ttl",
    "duplicate_origin",
    "invalid_method",
    "invalid_value",
    "empty_pattern",
    "duplicate_pattern",
    "cookie_names",
    "missing_field",
    "invalid_type",
]


@final
@dataclass(frozen=True)
class ConfigViolation:
    code: ViolationCode
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"
