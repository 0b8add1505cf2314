import logging
import re
from typing import final

from edgeroute.exceptions import InvalidRequestError, MethodNotAllowedError
from edgeroute.model import CacheBehavior, DistributionConfig, RouteMatch
from edgeroute.patterns import compile_pattern
from edgeroute.validator import ConfigValidator

logger = logging.getLogger(__name__)


@final
class RequestRouter:
    """Maps a request's path and method to an origin and cache behavior.

    The configuration is revalidated once on construction, so an unknown
    origin or a precedence tie is a ConfigError here and never a lookup
    failure in ``resolve``. The router never mutates its configuration, so
    ``resolve`` can be called from any number of threads without locking.
    """

    def __init__(self, config: DistributionConfig, validator: ConfigValidator | None = None):
        self._config = (validator or ConfigValidator()).revalidate(config)
        self._compiled: tuple[tuple[re.Pattern[str], CacheBehavior], ...] = tuple(
            (compile_pattern(behavior.path_pattern), behavior)
            for behavior in self._config.ordered_behaviors
        )

    @property
    def config(self) -> DistributionConfig:
        return self._config

    def match(self, path: str) -> CacheBehavior:
        """Return the first ordered behavior whose pattern matches, or the default."""
        for pattern, behavior in self._compiled:
            if pattern.fullmatch(path) is not None:
                return behavior
        return self._config.default_behavior

    def resolve(self, path: str, method: str) -> RouteMatch:
        if not isinstance(method, str) or not method:
            raise InvalidRequestError("Request method cannot be empty.")

        behavior = self.match(path)
        origin = self._config.origin_for(behavior)

        if method not in behavior.allowed_methods:
            logger.debug(
                "Rejecting %s %s: not allowed by '%s'",
                method,
                path,
                behavior.path_pattern or "default",
            )
            raise MethodNotAllowedError(method, behavior)

        logger.debug(
            "Routed %s %s to origin '%s' via '%s'",
            method,
            path,
            origin.id,
            behavior.path_pattern or "default",
        )
        return RouteMatch(origin, behavior)
