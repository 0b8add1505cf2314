import logging
from collections.abc import Sequence

from edgeroute.exceptions import ConfigError
from edgeroute.model import (
    COOKIE_POLICIES,
    HTTP_METHODS,
    VIEWER_PROTOCOL_POLICIES,
    CacheBehavior,
    ConfigViolation,
    DistributionConfig,
    OriginRule,
)
from edgeroute.patterns import normalize_pattern

logger = logging.getLogger(__name__)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates declared origins and behaviors before they are used for routing.

    Every check runs on every input; ``validate`` reports all violations at once
    and never returns a partially valid configuration.
    """

    def check(
        self, origins: Sequence[OriginRule], behaviors: Sequence[CacheBehavior]
    ) -> list[ConfigViolation]:
        violations: list[ConfigViolation] = []
        origin_ids = self._check_origins(origins, violations)

        indexed: list[tuple[int, CacheBehavior]] = []
        for idx, behavior in enumerate(behaviors):
            if isinstance(behavior, CacheBehavior):
                indexed.append((idx, behavior))
            else:
                violations.append(
                    ConfigViolation(
                        "invalid_type",
                        f"behaviors[{idx}]",
                        f"expected CacheBehavior, got {type(behavior).__name__}",
                    )
                )

        self._check_default(indexed, violations)
        self._check_ordering(indexed, violations)
        for idx, behavior in indexed:
            self._check_behavior(f"behaviors[{idx}]", behavior, origin_ids, violations)
        return violations

    def validate(
        self, origins: Sequence[OriginRule], behaviors: Sequence[CacheBehavior]
    ) -> DistributionConfig:
        violations = self.check(origins, behaviors)
        if violations:
            for violation in violations:
                logger.warning("Config violation [%s] %s", violation.code, violation)
            raise ConfigError(violations)

        default = next(b for b in behaviors if b.is_default)
        ordered = sorted((b for b in behaviors if not b.is_default), key=lambda b: b.precedence)
        config = DistributionConfig(
            origins={origin.id: origin for origin in origins},
            default_behavior=default,
            ordered_behaviors=tuple(ordered),
        )
        logger.info(
            "Validated distribution config: %d origins, %d ordered behaviors",
            len(config.origins),
            len(config.ordered_behaviors),
        )
        return config

    def revalidate(self, config: DistributionConfig) -> DistributionConfig:
        return self.validate(list(config.origins.values()), list(config.behaviors()))

    @staticmethod
    def _check_origins(
        origins: Sequence[OriginRule], violations: list[ConfigViolation]
    ) -> set[str]:
        seen: set[str] = set()
        for idx, origin in enumerate(origins):
            path = f"origins[{idx}]"
            if not isinstance(origin, OriginRule):
                violations.append(
                    ConfigViolation(
                        "invalid_type", path, f"expected OriginRule, got {type(origin).__name__}"
                    )
                )
                continue
            if not isinstance(origin.id, str) or not origin.id.strip():
                violations.append(
                    ConfigViolation("invalid_value", f"{path}.id", "origin id cannot be empty")
                )
                continue
            if not isinstance(origin.domain, str) or not origin.domain.strip():
                violations.append(
                    ConfigViolation(
                        "invalid_value", f"{path}.domain", "origin domain cannot be empty"
                    )
                )
            if origin.id in seen:
                violations.append(
                    ConfigViolation(
                        "duplicate_origin", f"{path}.id", f"origin id '{origin.id}' is not unique"
                    )
                )
            seen.add(origin.id)
        return seen

    @staticmethod
    def _check_default(
        behaviors: list[tuple[int, CacheBehavior]], violations: list[ConfigViolation]
    ) -> None:
        defaults = [idx for idx, b in behaviors if b.is_default]
        if not defaults:
            violations.append(
                ConfigViolation(
                    "default_behavior",
                    "behaviors",
                    "exactly one behavior without a path pattern is required, found none",
                )
            )
        for idx in defaults[1:]:
            violations.append(
                ConfigViolation(
                    "default_behavior",
                    f"behaviors[{idx}].path_pattern",
                    f"only one default behavior is allowed, "
                    f"behaviors[{defaults[0]}] is already the default",
                )
            )

    @staticmethod
    def _check_ordering(
        behaviors: list[tuple[int, CacheBehavior]], violations: list[ConfigViolation]
    ) -> None:
        precedences: dict[int, int] = {}
        patterns: dict[str, int] = {}
        for idx, behavior in behaviors:
            if behavior.is_default:
                continue
            path = f"behaviors[{idx}]"

            pattern = behavior.path_pattern
            if not isinstance(pattern, str) or not pattern:
                violations.append(
                    ConfigViolation(
                        "empty_pattern", f"{path}.path_pattern", "path pattern cannot be empty"
                    )
                )
            elif normalize_pattern(pattern) in patterns:
                violations.append(
                    ConfigViolation(
                        "duplicate_pattern",
                        f"{path}.path_pattern",
                        f"path pattern '{pattern}' is already used by "
                        f"behaviors[{patterns[normalize_pattern(pattern)]}]",
                    )
                )
            else:
                patterns[normalize_pattern(pattern)] = idx

            if behavior.precedence is None:
                violations.append(
                    ConfigViolation(
                        "missing_precedence",
                        f"{path}.precedence",
                        f"behavior for '{behavior.path_pattern}' must declare a precedence",
                    )
                )
            elif not _is_int(behavior.precedence):
                violations.append(
                    ConfigViolation(
                        "invalid_type", f"{path}.precedence", "precedence must be an integer"
                    )
                )
            elif behavior.precedence in precedences:
                violations.append(
                    ConfigViolation(
                        "duplicate_precedence",
                        f"{path}.precedence",
                        f"precedence {behavior.precedence} is already used by "
                        f"behaviors[{precedences[behavior.precedence]}]",
                    )
                )
            else:
                precedences[behavior.precedence] = idx

    @staticmethod
    def _check_behavior(
        path: str,
        behavior: CacheBehavior,
        origin_ids: set[str],
        violations: list[ConfigViolation],
    ) -> None:
        if behavior.target_origin_id not in origin_ids:
            violations.append(
                ConfigViolation(
                    "unknown_origin",
                    f"{path}.target_origin_id",
                    f"origin '{behavior.target_origin_id}' is not declared",
                )
            )

        for attr in ("allowed_methods", "cached_methods"):
            unknown = getattr(behavior, attr) - HTTP_METHODS
            if unknown:
                violations.append(
                    ConfigViolation(
                        "invalid_method",
                        f"{path}.{attr}",
                        f"unknown HTTP methods: {', '.join(sorted(map(str, unknown)))}",
                    )
                )
        if not behavior.allowed_methods:
            violations.append(
                ConfigViolation(
                    "invalid_method", f"{path}.allowed_methods", "at least one method is required"
                )
            )
        not_allowed = behavior.cached_methods - behavior.allowed_methods
        if not_allowed:
            violations.append(
                ConfigViolation(
                    "cached_methods",
                    f"{path}.cached_methods",
                    f"cached methods must be a subset of allowed methods, "
                    f"not allowed: {', '.join(sorted(map(str, not_allowed)))}",
                )
            )

        ttl = behavior.ttl
        if not all(_is_int(v) for v in (ttl.min, ttl.default, ttl.max)):
            violations.append(
                ConfigViolation("ttl", f"{path}.ttl", "ttl values must be integers")
            )
        elif ttl.min < 0:
            violations.append(
                ConfigViolation("ttl", f"{path}.ttl", f"ttl values cannot be negative: {ttl}")
            )
        elif not ttl.min <= ttl.default <= ttl.max:
            violations.append(
                ConfigViolation(
                    "ttl",
                    f"{path}.ttl",
                    f"expected min <= default <= max, got min={ttl.min}, "
                    f"default={ttl.default}, max={ttl.max}",
                )
            )

        forwarding = behavior.forwarding
        if forwarding.cookie_policy not in COOKIE_POLICIES:
            violations.append(
                ConfigViolation(
                    "invalid_value",
                    f"{path}.forwarding.cookie_policy",
                    f"invalid cookie policy '{forwarding.cookie_policy}', "
                    f"expected one of: {', '.join(COOKIE_POLICIES)}",
                )
            )
        elif forwarding.cookie_policy == "allowList" and not forwarding.cookie_names:
            violations.append(
                ConfigViolation(
                    "cookie_names",
                    f"{path}.forwarding.cookie_names",
                    "allowList cookie policy requires at least one cookie name",
                )
            )
        elif forwarding.cookie_policy != "allowList" and forwarding.cookie_names:
            violations.append(
                ConfigViolation(
                    "cookie_names",
                    f"{path}.forwarding.cookie_names",
                    f"cookie names are only used with the allowList policy, "
                    f"not '{forwarding.cookie_policy}'",
                )
            )

        if behavior.viewer_protocol_policy not in VIEWER_PROTOCOL_POLICIES:
            violations.append(
                ConfigViolation(
                    "invalid_value",
                    f"{path}.viewer_protocol_policy",
                    f"invalid viewer protocol policy '{behavior.viewer_protocol_policy}', "
                    f"expected one of: {', '.join(VIEWER_PROTOCOL_POLICIES)}",
                )
            )
