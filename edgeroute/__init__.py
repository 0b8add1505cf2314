from edgeroute.exceptions import (
    ConfigError,
    InvalidRequestError,
    MethodNotAllowedError,
    RoutingError,
)
from edgeroute.live import LiveRouter
from edgeroute.loader import load_config, load_config_file, parse_declaration
from edgeroute.model import (
    CacheBehavior,
    ConfigViolation,
    DistributionConfig,
    Forwarding,
    OriginRule,
    RouteMatch,
    Ttl,
)
from edgeroute.router import RequestRouter
from edgeroute.validator import ConfigValidator

__all__ = [
    "CacheBehavior",
    "ConfigError",
    "ConfigValidator",
    "ConfigViolation",
    "DistributionConfig",
    "Forwarding",
    "InvalidRequestError",
    "LiveRouter",
    "MethodNotAllowedError",
    "OriginRule",
    "RequestRouter",
    "RouteMatch",
    "RoutingError",
    "Ttl",
    "load_config",
    "load_config_file",
    "parse_declaration",
]
