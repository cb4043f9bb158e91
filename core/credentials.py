"""Shared-secret verification for inbound requests."""

import hmac
from collections.abc import Mapping

from core.config import RouteSettings
from core.exceptions import AuthenticationError, ConfigurationError


def extract_credential(route: RouteSettings, headers: Mapping[str, str]) -> str | None:
    """Return the first credential header present, primary before alias."""
    for name in route.credential_headers:
        value = headers.get(name)
        if value is not None:
            return value
    return None


def verify(route: RouteSettings, headers: Mapping[str, str]) -> str:
    """Check the caller's credential against the route and return it.

    An empty expected credential is a misconfiguration and fails closed.
    """
    if not route.expected_credential:
        setting = route.credential_env or f"{route.name}.expected_credential"
        raise ConfigurationError(
            f"Expected credential for route '{route.name}' is not configured",
            code="MISSING_EXPECTED_CREDENTIAL",
            setting=setting,
        )

    supplied = extract_credential(route, headers)
    if supplied is None or not hmac.compare_digest(
        supplied.encode(), route.expected_credential.encode()
    ):
        raise AuthenticationError(route.error_code, route=route.name)
    return supplied
