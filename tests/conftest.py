import pytest

from edgeroute.component import ComponentRegistry
from edgeroute.context import AppContext, _ContextStore
from edgeroute.model import CacheBehavior, OriginRule, Ttl


@pytest.fixture(autouse=True)
def clean_registries():
    ComponentRegistry._instances.clear()
    ComponentRegistry._registered_names.clear()


@pytest.fixture(autouse=True)
def app_context():
    _ContextStore.clear()
    _ContextStore.set(AppContext(name="test", env="test"))


@pytest.fixture
def origins():
    return [
        OriginRule(id="primary", domain="primary.s3.amazonaws.com", access_control_ref="site"),
        OriginRule(
            id="secondary", domain="secondary.s3.amazonaws.com", access_control_ref="site"
        ),
    ]


@pytest.fixture
def default_behavior():
    return CacheBehavior(target_origin_id="primary", allowed_methods={"GET", "HEAD"})


@pytest.fixture
def secondary_behavior():
    return CacheBehavior(
        target_origin_id="secondary",
        path_pattern="/secondary/*",
        precedence=0,
        allowed_methods={"GET", "HEAD"},
        cached_methods={"GET", "HEAD"},
        ttl=Ttl.fixed(0),
    )


@pytest.fixture
def declaration():
    """Two-origin declaration in Distribution argument shape."""
    return {
        "origins": [
            {
                "origin_id": "primary",
                "domain_name": "primary.s3.amazonaws.com",
                "origin_access_control_id": "site",
            },
            {
                "origin_id": "secondary",
                "domain_name": "secondary.s3.amazonaws.com",
                "origin_access_control_id": "site",
            },
        ],
        "default_cache_behavior": {
            "target_origin_id": "primary",
            "allowed_methods": ["GET", "HEAD"],
            "cached_methods": ["GET", "HEAD"],
            "min_ttl": 0,
            "default_ttl": 3600,
            "max_ttl": 86400,
        },
        "ordered_cache_behaviors": [
            {
                "path_pattern": "/secondary/*",
                "precedence": 0,
                "target_origin_id": "secondary",
                "min_ttl": 0,
                "default_ttl": 0,
                "max_ttl": 0,
            }
        ],
    }
