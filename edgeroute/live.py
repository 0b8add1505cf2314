import logging
import threading
from pathlib import Path
from typing import final

from edgeroute.loader import load_config_file
from edgeroute.model import DistributionConfig, RouteMatch
from edgeroute.router import RequestRouter
from edgeroute.validator import ConfigValidator

logger = logging.getLogger(__name__)


@final
class LiveRouter:
    """A RequestRouter whose configuration can be replaced while serving.

    Reload builds a complete new router before swapping the single reference
    readers use, so a request is routed either entirely by the old
    configuration or entirely by the new one.
    """

    def __init__(self, config: DistributionConfig, validator: ConfigValidator | None = None):
        self._validator = validator or ConfigValidator()
        self._router = RequestRouter(config, self._validator)
        self._generation = 1
        self._reload_lock = threading.Lock()

    @property
    def config(self) -> DistributionConfig:
        return self._router.config

    @property
    def generation(self) -> int:
        return self._generation

    def resolve(self, path: str, method: str) -> RouteMatch:
        router = self._router
        return router.resolve(path, method)

    def reload(self, config: DistributionConfig) -> None:
        """Activate a new configuration; on ConfigError the current one stays active."""
        router = RequestRouter(config, self._validator)
        with self._reload_lock:
            self._router = router
            self._generation += 1
            logger.info("Activated distribution config generation %d", self._generation)

    def reload_file(self, path: str | Path) -> None:
        self.reload(load_config_file(path, self._validator))
