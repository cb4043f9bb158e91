"""Configuration models and loading."""

import json
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from core.exceptions import ConfigurationError

CONFIG_FILE_ENV = "RELAY_CONFIG_FILE"
DEFAULT_CD_BASE_URL = "https://papi.consumerdirect.io"
CARRIER_HEADER = "x-cd-authorization"


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 10000
    debug: bool = False
    timeout: float = 30.0
    max_body_size: int = 5 * 1024 * 1024
    keep_alive_timeout: int = 5
    allowed_origins: list[str] = Field(default_factory=list)


class EgressSettings(BaseModel):
    tunnel_url: str = ""


class RouteSettings(BaseModel):
    """One entry of the route table."""

    name: str
    prefix: str
    upstream_base_url: str = ""
    credential_header: str
    credential_alias: str | None = None
    expected_credential: str = ""
    error_code: str = "INVALID_PROXY_KEY"
    carrier_header: str | None = None
    default_content_type: str | None = None
    # Environment keys feeding the two per-route values
    credential_env: str | None = None
    base_url_env: str | None = None

    @field_validator("prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not value.startswith("/") or value == "/" or value.endswith("/"):
            raise ValueError(f"prefix must look like '/name', got {value!r}")
        return value

    @field_validator("credential_header", "credential_alias", "carrier_header")
    @classmethod
    def _lower_header(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        if not value:
            raise ValueError("header name must not be empty")
        return value

    @model_validator(mode="after")
    def _check_headers(self) -> "RouteSettings":
        if self.credential_alias == self.credential_header:
            raise ValueError("credential_alias must differ from credential_header")
        if self.carrier_header and self.carrier_header in self.credential_headers:
            raise ValueError("carrier_header must not be a credential header")
        return self

    @property
    def credential_headers(self) -> tuple[str, ...]:
        """Accepted credential headers, primary first."""
        if self.credential_alias:
            return (self.credential_header, self.credential_alias)
        return (self.credential_header,)


def default_routes() -> list[RouteSettings]:
    return [
        RouteSettings(
            name="papi",
            prefix="/papi",
            upstream_base_url=DEFAULT_CD_BASE_URL,
            credential_header="x-proxy-api-key",
            error_code="INVALID_PROXY_KEY",
            carrier_header=CARRIER_HEADER,
            credential_env="PROXY_API_KEY",
            base_url_env="CD_PAPI_BASE_URL",
        ),
        RouteSettings(
            name="cd",
            prefix="/cd",
            upstream_base_url=DEFAULT_CD_BASE_URL,
            credential_header="x-shared-secret",
            credential_alias="x-proxy-api-key",
            error_code="INVALID_SHARED_SECRET",
            carrier_header=CARRIER_HEADER,
            credential_env="SHARED_SECRET",
            base_url_env="CONSUMERDIRECT_BASE_URL",
        ),
    ]


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    egress: EgressSettings = Field(default_factory=EgressSettings)
    routes: list[RouteSettings] = Field(default_factory=default_routes)

    @model_validator(mode="after")
    def _unique_prefixes(self) -> "Config":
        prefixes = [route.prefix for route in self.routes]
        if len(prefixes) != len(set(prefixes)):
            raise ValueError("route prefixes must be unique")
        names = [route.name for route in self.routes]
        if len(names) != len(set(names)):
            raise ValueError("route names must be unique")
        return self


def load_config(
    environ: Mapping[str, str] | None = None,
    config_file: Path | None = None,
) -> Config:
    """Load the route table and overlay environment-style settings."""
    env = os.environ if environ is None else environ
    if config_file is None and env.get(CONFIG_FILE_ENV):
        config_file = Path(env[CONFIG_FILE_ENV])

    if config_file is not None:
        try:
            data = json.loads(config_file.read_text())
            config = Config.model_validate(data)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read config file {config_file}: {e}", setting=CONFIG_FILE_ENV
            ) from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(
                f"Invalid config file {config_file}: {e}", setting=CONFIG_FILE_ENV
            ) from e
    else:
        config = Config()

    try:
        return _apply_environment(config, env)
    except (ValueError, ValidationError) as e:
        raise ConfigurationError(f"Invalid environment setting: {e}") from e


def _apply_environment(config: Config, env: Mapping[str, str]) -> Config:
    proxy = config.proxy.model_copy()
    if env.get("PORT"):
        proxy.port = int(env["PORT"])
    if env.get("HOST"):
        proxy.host = env["HOST"]
    if env.get("RELAY_DEBUG"):
        proxy.debug = env["RELAY_DEBUG"].lower() in ("1", "true", "yes")
    if env.get("UPSTREAM_TIMEOUT"):
        proxy.timeout = float(env["UPSTREAM_TIMEOUT"])
    if env.get("MAX_BODY_SIZE"):
        proxy.max_body_size = int(env["MAX_BODY_SIZE"])
    if env.get("ALLOWED_ORIGINS"):
        proxy.allowed_origins = [
            origin.strip() for origin in env["ALLOWED_ORIGINS"].split(",") if origin.strip()
        ]

    egress = config.egress.model_copy()
    tunnel_url = env.get("EGRESS_PROXY_URL") or env.get("FIXIE_URL")
    if tunnel_url:
        egress.tunnel_url = tunnel_url

    routes = []
    for route in config.routes:
        updates = {}
        if route.credential_env and env.get(route.credential_env):
            updates["expected_credential"] = env[route.credential_env]
        if route.base_url_env and env.get(route.base_url_env):
            updates["upstream_base_url"] = env[route.base_url_env]
        routes.append(route.model_copy(update=updates))

    return Config(proxy=proxy, egress=egress, routes=routes)
