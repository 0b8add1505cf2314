"""Read declared distributions into routing configuration.

The declaration uses the same snake_case shape as the arguments of a Pulumi
``aws.cloudfront.Distribution`` (and Terraform's ``aws_cloudfront_distribution``),
so an existing declaration can be checked and routed without translation::

    {
        "origins": [
            {"origin_id": "primary", "domain_name": "primary.s3.amazonaws.com",
             "origin_access_control_id": "primary-oac"}
        ],
        "default_cache_behavior": {"target_origin_id": "primary"},
        "ordered_cache_behaviors": [
            {"path_pattern": "/secondary/*", "target_origin_id": "secondary"}
        ]
    }

Ordered behaviors without an explicit ``precedence`` take their position in
the list, which is how CloudFront evaluates them.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from edgeroute.exceptions import ConfigError
from edgeroute.model import (
    DEFAULT_DEFAULT_TTL,
    DEFAULT_MAX_TTL,
    DEFAULT_MIN_TTL,
    READ_ONLY_METHODS,
    CacheBehavior,
    ConfigViolation,
    DistributionConfig,
    Forwarding,
    OriginRule,
    Ttl,
)
from edgeroute.validator import ConfigValidator

logger = logging.getLogger(__name__)

# CloudFront and Terraform still call the allow list a whitelist.
_COOKIE_FORWARD_ALIASES = {"whitelist": "allowList"}
_INDEXED_FIELD = re.compile(r"^(origins|behaviors)\[(\d+)\]")
_MISSING = object()


@dataclass
class Declaration:
    """Origins and behaviors read from a declaration, with their source fields."""

    origins: list[OriginRule] = field(default_factory=list)
    behaviors: list[CacheBehavior] = field(default_factory=list)
    origin_sources: list[str] = field(default_factory=list)
    behavior_sources: list[str] = field(default_factory=list)
    violations: list[ConfigViolation] = field(default_factory=list)
    # Entries that were declared but could not be read
    default_dropped: bool = False
    dropped_origin_ids: set[str] = field(default_factory=set)

    def source_field(self, validator_field: str) -> str:
        """Translate a validator field path back to the declaration's own keys."""
        match = _INDEXED_FIELD.match(validator_field)
        if not match:
            return validator_field
        kind, idx = match.group(1), int(match.group(2))
        sources = self.origin_sources if kind == "origins" else self.behavior_sources
        if idx >= len(sources):
            return validator_field
        return sources[idx] + validator_field[match.end() :]

    def follows_from_dropped(self, violation: ConfigViolation) -> bool:
        """Whether a validator finding only exists because an entry failed to read.

        A default behavior or origin with a structural error is left out of
        validation, which would otherwise also report the default as missing or
        every behavior targeting that origin as unknown.
        """
        if violation.code == "default_behavior" and violation.field == "behaviors":
            return self.default_dropped
        if violation.code == "unknown_origin":
            match = _INDEXED_FIELD.match(violation.field)
            if match and match.group(1) == "behaviors":
                behavior = self.behaviors[int(match.group(2))]
                return behavior.target_origin_id in self.dropped_origin_ids
        return False


class _Reader:
    def __init__(self, violations: list[ConfigViolation]):
        self.violations = violations

    def get(
        self,
        data: Mapping[str, Any],
        key: str,
        types: type | tuple[type, ...],
        path: str,
        default: Any = _MISSING,
    ) -> Any:
        value = data.get(key, _MISSING)
        if value is _MISSING or value is None:
            if default is _MISSING:
                self.violations.append(
                    ConfigViolation("missing_field", f"{path}.{key}", f"'{key}' is required")
                )
            return None if default is _MISSING else default
        types = types if isinstance(types, tuple) else (types,)
        # bool is an int subclass, but true/false is never a valid TTL or precedence
        if not isinstance(value, types) or (isinstance(value, bool) and bool not in types):
            expected = " or ".join(t.__name__ for t in types)
            self.violations.append(
                ConfigViolation(
                    "invalid_type",
                    f"{path}.{key}",
                    f"expected {expected}, got {type(value).__name__}",
                )
            )
            return None
        return value

    def mapping(self, value: Any, path: str) -> Mapping[str, Any] | None:
        if isinstance(value, Mapping):
            return value
        self.violations.append(
            ConfigViolation(
                "invalid_type", path, f"expected an object, got {type(value).__name__}"
            )
        )
        return None

    def methods(self, data: Mapping[str, Any], key: str, path: str) -> frozenset[str] | None:
        value = self.get(data, key, list, path, default=sorted(READ_ONLY_METHODS))
        if value is None:
            return None
        if not all(isinstance(method, str) for method in value):
            self.violations.append(
                ConfigViolation("invalid_type", f"{path}.{key}", "methods must be strings")
            )
            return None
        return frozenset(value)


def _read_origin(reader: _Reader, raw: Any, path: str) -> OriginRule | None:
    data = reader.mapping(raw, path)
    if data is None:
        return None
    before = len(reader.violations)
    origin_id = reader.get(data, "origin_id", str, path)
    domain = reader.get(data, "domain_name", str, path)
    access_control_ref = reader.get(data, "origin_access_control_id", str, path, default=None)
    if len(reader.violations) > before:
        return None
    return OriginRule(id=origin_id, domain=domain, access_control_ref=access_control_ref)


def _read_forwarding(reader: _Reader, data: Mapping[str, Any], path: str) -> Forwarding | None:
    raw = reader.get(data, "forwarded_values", Mapping, path, default={})
    if raw is None:
        return None
    fv_path = f"{path}.forwarded_values"
    query_string = reader.get(raw, "query_string", bool, fv_path, default=False)
    cookies = reader.get(raw, "cookies", Mapping, fv_path, default={})
    if query_string is None or cookies is None:
        return None
    cookies_path = f"{fv_path}.cookies"
    forward = reader.get(cookies, "forward", str, cookies_path, default="none")
    names = reader.get(cookies, "whitelisted_names", list, cookies_path, default=[])
    if forward is None or names is None:
        return None
    return Forwarding(
        query_string=query_string,
        cookie_policy=_COOKIE_FORWARD_ALIASES.get(forward, forward),
        cookie_names=tuple(names),
    )


def _read_behavior(
    reader: _Reader, raw: Any, path: str, position: int | None
) -> CacheBehavior | None:
    data = reader.mapping(raw, path)
    if data is None:
        return None
    before = len(reader.violations)

    target_origin_id = reader.get(data, "target_origin_id", str, path)
    if position is None:
        path_pattern = None
        precedence = None
        if data.get("path_pattern") is not None:
            reader.violations.append(
                ConfigViolation(
                    "default_behavior",
                    f"{path}.path_pattern",
                    "the default cache behavior cannot declare a path pattern",
                )
            )
    else:
        path_pattern = reader.get(data, "path_pattern", str, path)
        precedence = reader.get(data, "precedence", int, path, default=position)

    allowed_methods = reader.methods(data, "allowed_methods", path)
    cached_methods = reader.methods(data, "cached_methods", path)
    ttl = Ttl(
        min=reader.get(data, "min_ttl", int, path, default=DEFAULT_MIN_TTL),
        default=reader.get(data, "default_ttl", int, path, default=DEFAULT_DEFAULT_TTL),
        max=reader.get(data, "max_ttl", int, path, default=DEFAULT_MAX_TTL),
    )
    forwarding = _read_forwarding(reader, data, path)
    viewer_protocol_policy = reader.get(
        data, "viewer_protocol_policy", str, path, default="redirect-to-https"
    )
    compress = reader.get(data, "compress", bool, path, default=True)

    if len(reader.violations) > before:
        return None
    return CacheBehavior(
        target_origin_id=target_origin_id,
        path_pattern=path_pattern,
        precedence=precedence,
        allowed_methods=allowed_methods,
        cached_methods=cached_methods,
        ttl=ttl,
        forwarding=forwarding,
        viewer_protocol_policy=viewer_protocol_policy,
        compress=compress,
    )


def read_declaration(data: Mapping[str, Any]) -> Declaration:
    """Read a declaration, collecting structural problems instead of raising."""
    declaration = Declaration()
    reader = _Reader(declaration.violations)

    if reader.mapping(data, "declaration") is None:
        return declaration

    for idx, raw in enumerate(reader.get(data, "origins", list, "declaration", default=[]) or []):
        source = f"origins[{idx}]"
        origin = _read_origin(reader, raw, source)
        if origin is not None:
            declaration.origins.append(origin)
            declaration.origin_sources.append(source)
        elif isinstance(raw, Mapping) and isinstance(raw.get("origin_id"), str):
            declaration.dropped_origin_ids.add(raw["origin_id"])

    raw_default = data.get("default_cache_behavior")
    if raw_default is not None:
        behavior = _read_behavior(reader, raw_default, "default_cache_behavior", None)
        if behavior is not None:
            declaration.behaviors.append(behavior)
            declaration.behavior_sources.append("default_cache_behavior")
        else:
            declaration.default_dropped = True

    raw_ordered = reader.get(data, "ordered_cache_behaviors", list, "declaration", default=[])
    for idx, raw in enumerate(raw_ordered or []):
        source = f"ordered_cache_behaviors[{idx}]"
        behavior = _read_behavior(reader, raw, source, idx)
        if behavior is not None:
            declaration.behaviors.append(behavior)
            declaration.behavior_sources.append(source)

    return declaration


def parse_declaration(data: Mapping[str, Any]) -> tuple[list[OriginRule], list[CacheBehavior]]:
    declaration = read_declaration(data)
    if declaration.violations:
        raise ConfigError(declaration.violations)
    return declaration.origins, declaration.behaviors


def load_config(
    data: Mapping[str, Any], validator: ConfigValidator | None = None
) -> DistributionConfig:
    """Read and validate a declaration, reporting every problem in one ConfigError."""
    validator = validator or ConfigValidator()
    declaration = read_declaration(data)
    violations = list(declaration.violations)
    violations.extend(
        ConfigViolation(v.code, declaration.source_field(v.field), v.message)
        for v in validator.check(declaration.origins, declaration.behaviors)
        if not declaration.follows_from_dropped(v)
    )
    if violations:
        raise ConfigError(violations)
    return validator.validate(declaration.origins, declaration.behaviors)


def load_config_file(
    path: str | Path, validator: ConfigValidator | None = None
) -> DistributionConfig:
    path = Path(path)
    logger.debug("Loading distribution declaration from %s", path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(
            [ConfigViolation("invalid_value", str(path), f"cannot read file: {e.strerror or e}")]
        ) from e
    except UnicodeDecodeError as e:
        raise ConfigError(
            [ConfigViolation("invalid_value", str(path), "file is not valid UTF-8")]
        ) from e
    except json.JSONDecodeError as e:
        raise ConfigError(
            [
                ConfigViolation(
                    "invalid_type", str(path), f"invalid JSON: {e.msg} (line {e.lineno})"
                )
            ]
        ) from e
    return load_config(data, validator)
