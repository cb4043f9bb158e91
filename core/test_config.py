import json

import pytest
from pydantic import ValidationError

from core.config import Config, RouteSettings, load_config
from core.exceptions import ConfigurationError


def test_defaults_have_two_routes_without_secrets():
    config = load_config(environ={})
    assert [r.prefix for r in config.routes] == ["/papi", "/cd"]
    assert all(r.expected_credential == "" for r in config.routes)
    assert config.proxy.timeout == 30.0
    assert config.egress.tunnel_url == ""


def test_environment_overlay():
    env = {
        "PORT": "8123",
        "UPSTREAM_TIMEOUT": "15",
        "FIXIE_URL": "http://user:pw@fixie.test:80",
        "ALLOWED_ORIGINS": "https://a.test, https://b.test,",
        "SHARED_SECRET": "s3cret",
        "PROXY_API_KEY": "k3y",
        "CONSUMERDIRECT_BASE_URL": "https://papi.example.test",
    }
    config = load_config(environ=env)
    routes = {r.name: r for r in config.routes}

    assert config.proxy.port == 8123
    assert config.proxy.timeout == 15.0
    assert config.proxy.allowed_origins == ["https://a.test", "https://b.test"]
    assert config.egress.tunnel_url == "http://user:pw@fixie.test:80"
    assert routes["cd"].expected_credential == "s3cret"
    assert routes["cd"].upstream_base_url == "https://papi.example.test"
    assert routes["papi"].expected_credential == "k3y"


def test_egress_proxy_url_wins_over_legacy_key():
    env = {"EGRESS_PROXY_URL": "http://new.test:1", "FIXIE_URL": "http://old.test:1"}
    assert load_config(environ=env).egress.tunnel_url == "http://new.test:1"


def test_invalid_port_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        load_config(environ={"PORT": "not-a-number"})


def test_config_file_replaces_route_table(tmp_path):
    path = tmp_path / "relay.json"
    path.write_text(
        json.dumps(
            {
                "routes": [
                    {
                        "name": "partner",
                        "prefix": "/partner",
                        "upstream_base_url": "https://partner.test",
                        "credential_header": "X-Proxy-Api-Key",
                        "credential_env": "PARTNER_KEY",
                    }
                ]
            }
        )
    )
    config = load_config(environ={"RELAY_CONFIG_FILE": str(path), "PARTNER_KEY": "pk"})
    assert len(config.routes) == 1
    route = config.routes[0]
    assert route.credential_header == "x-proxy-api-key"
    assert route.expected_credential == "pk"


def test_broken_config_file_is_refused(tmp_path):
    path = tmp_path / "relay.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError) as exc:
        load_config(environ={}, config_file=path)
    assert exc.value.setting == "RELAY_CONFIG_FILE"


@pytest.mark.parametrize("prefix", ["cd", "/cd/", "/"])
def test_prefix_shape_is_validated(prefix):
    with pytest.raises(ValidationError):
        RouteSettings(name="x", prefix=prefix, credential_header="x-key")


def test_alias_must_differ_from_primary_header():
    with pytest.raises(ValidationError):
        RouteSettings(
            name="x",
            prefix="/x",
            credential_header="X-Key",
            credential_alias="x-key",
        )


def test_carrier_must_not_be_a_credential_header():
    with pytest.raises(ValidationError):
        RouteSettings(
            name="x",
            prefix="/x",
            credential_header="x-key",
            carrier_header="X-Key",
        )


def test_duplicate_prefixes_rejected(make_route):
    with pytest.raises(ValidationError):
        Config(routes=[make_route(), make_route(name="other")])
