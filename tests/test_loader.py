import json

import pytest

from edgeroute.exceptions import ConfigError
from edgeroute.loader import (
    load_config,
    load_config_file,
    parse_declaration,
    read_declaration,
)
from edgeroute.model import Forwarding, OriginRule, Ttl
from edgeroute.router import RequestRouter


def test_parse_declaration(declaration):
    origins, behaviors = parse_declaration(declaration)

    assert origins == [
        OriginRule(id="primary", domain="primary.s3.amazonaws.com", access_control_ref="site"),
        OriginRule(
            id="secondary", domain="secondary.s3.amazonaws.com", access_control_ref="site"
        ),
    ]
    default, secondary = behaviors
    assert default.is_default
    assert default.ttl == Ttl(min=0, default=3600, max=86400)
    assert secondary.path_pattern == "/secondary/*"
    assert secondary.precedence == 0
    assert secondary.ttl == Ttl.fixed(0)


def test_defaults_for_omitted_keys():
    origins, behaviors = parse_declaration(
        {
            "origins": [{"origin_id": "primary", "domain_name": "primary.example.com"}],
            "default_cache_behavior": {"target_origin_id": "primary"},
        }
    )

    assert origins[0].access_control_ref is None
    (default,) = behaviors
    assert default.allowed_methods == frozenset({"GET", "HEAD"})
    assert default.cached_methods == frozenset({"GET", "HEAD"})
    assert default.ttl == Ttl()
    assert default.forwarding == Forwarding()
    assert default.viewer_protocol_policy == "redirect-to-https"
    assert default.compress is True


def test_precedence_defaults_to_list_position(declaration):
    declaration["ordered_cache_behaviors"] = [
        {"path_pattern": "/first/*", "target_origin_id": "secondary"},
        {"path_pattern": "/second/*", "target_origin_id": "primary"},
    ]

    _, behaviors = parse_declaration(declaration)

    assert [(b.path_pattern, b.precedence) for b in behaviors[1:]] == [
        ("/first/*", 0),
        ("/second/*", 1),
    ]


def test_forwarded_values(declaration):
    declaration["default_cache_behavior"]["forwarded_values"] = {
        "query_string": True,
        "cookies": {"forward": "whitelist", "whitelisted_names": ["session"]},
    }

    _, behaviors = parse_declaration(declaration)

    assert behaviors[0].forwarding == Forwarding(
        query_string=True, cookie_policy="allowList", cookie_names=("session",)
    )


def test_structural_violations_are_collected():
    declaration = read_declaration(
        {
            "origins": [{"domain_name": 42}],
            "default_cache_behavior": {"target_origin_id": "primary", "min_ttl": "0"},
            "ordered_cache_behaviors": ["not-an-object"],
        }
    )

    assert [(v.code, v.field) for v in declaration.violations] == [
        ("missing_field", "origins[0].origin_id"),
        ("invalid_type", "origins[0].domain_name"),
        ("invalid_type", "default_cache_behavior.min_ttl"),
        ("invalid_type", "ordered_cache_behaviors[0]"),
    ]
    assert declaration.origins == []
    assert declaration.behaviors == []


def test_boolean_is_not_an_integer(declaration):
    declaration["ordered_cache_behaviors"][0]["precedence"] = False

    with pytest.raises(ConfigError) as exc_info:
        parse_declaration(declaration)

    assert [(v.code, v.field) for v in exc_info.value.violations] == [
        ("invalid_type", "ordered_cache_behaviors[0].precedence")
    ]


def test_default_behavior_with_path_pattern(declaration):
    declaration["default_cache_behavior"]["path_pattern"] = "/*"

    with pytest.raises(ConfigError) as exc_info:
        parse_declaration(declaration)

    assert exc_info.value.codes == ["default_behavior"]


def test_declaration_must_be_an_object():
    with pytest.raises(ConfigError) as exc_info:
        load_config(["origins"])

    assert [(v.code, v.field) for v in exc_info.value.violations][0] == (
        "invalid_type",
        "declaration",
    )


def test_load_config_routes(declaration):
    router = RequestRouter(load_config(declaration))

    assert router.resolve("/index.html", "GET").origin.id == "primary"
    assert router.resolve("/secondary/foo.png", "GET").origin.id == "secondary"


def test_load_config_reports_declaration_fields(declaration):
    declaration["ordered_cache_behaviors"].append(
        {"path_pattern": "/other/*", "precedence": 0, "target_origin_id": "tertiary"}
    )
    declaration["default_cache_behavior"]["cached_methods"] = ["GET", "HEAD", "OPTIONS"]

    with pytest.raises(ConfigError) as exc_info:
        load_config(declaration)

    assert sorted((v.code, v.field) for v in exc_info.value.violations) == [
        ("cached_methods", "default_cache_behavior.cached_methods"),
        ("duplicate_precedence", "ordered_cache_behaviors[1].precedence"),
        ("unknown_origin", "ordered_cache_behaviors[1].target_origin_id"),
    ]


def test_load_config_combines_structural_and_semantic_violations(declaration):
    declaration["origins"].append({"origin_id": "broken"})
    declaration["default_cache_behavior"]["min_ttl"] = 99999

    with pytest.raises(ConfigError) as exc_info:
        load_config(declaration)

    assert exc_info.value.codes == ["missing_field", "ttl"]


def test_load_config_missing_default(declaration):
    del declaration["default_cache_behavior"]

    with pytest.raises(ConfigError) as exc_info:
        load_config(declaration)

    assert exc_info.value.codes == ["default_behavior"]


def test_load_config_file(tmp_path, declaration):
    path = tmp_path / "distribution.json"
    path.write_text(json.dumps(declaration), encoding="utf-8")

    config = load_config_file(path)

    assert [b.path_pattern for b in config.ordered_behaviors] == ["/secondary/*"]


def test_load_config_file_invalid_json(tmp_path):
    path = tmp_path / "distribution.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="invalid JSON"):
        load_config_file(path)


def test_load_config_file_missing(tmp_path):
    with pytest.raises(ConfigError, match="cannot read file"):
        load_config_file(tmp_path / "missing.json")


def test_load_config_file_not_utf8(tmp_path):
    path = tmp_path / "distribution.json"
    path.write_bytes(b'{"origins": "\xff\xfe"}')

    with pytest.raises(ConfigError, match="not valid UTF-8") as exc_info:
        load_config_file(path)

    assert exc_info.value.codes == ["invalid_value"]


def test_unreadable_default_is_not_also_reported_missing(declaration):
    declaration["default_cache_behavior"]["min_ttl"] = "0"

    with pytest.raises(ConfigError) as exc_info:
        load_config(declaration)

    assert [(v.code, v.field) for v in exc_info.value.violations] == [
        ("invalid_type", "default_cache_behavior.min_ttl")
    ]


def test_unreadable_origin_does_not_make_its_behaviors_unknown(declaration):
    del declaration["origins"][1]["domain_name"]

    with pytest.raises(ConfigError) as exc_info:
        load_config(declaration)

    assert [(v.code, v.field) for v in exc_info.value.violations] == [
        ("missing_field", "origins[1].domain_name")
    ]


def test_undeclared_origin_is_still_unknown_next_to_unreadable_one(declaration):
    del declaration["origins"][1]["domain_name"]
    declaration["ordered_cache_behaviors"].append(
        {"path_pattern": "/other/*", "precedence": 1, "target_origin_id": "tertiary"}
    )

    with pytest.raises(ConfigError) as exc_info:
        load_config(declaration)

    assert exc_info.value.codes == ["missing_field", "unknown_origin"]
