"""
Integration tests for the authentication probe.

Uses httpbin's basic auth endpoint.
"""

import pytest

from sitediff.auth import AuthenticationProbe
from sitediff.models import Credentials

pytestmark = pytest.mark.integration

BASIC_AUTH_URL = "https://httpbin.org/basic-auth/user/passwd"


@pytest.mark.asyncio
async def test_probe_valid_credentials():
    """Test probe with accepted credentials."""
    result = await AuthenticationProbe().probe(BASIC_AUTH_URL, Credentials("user", "passwd"))

    assert result.success is True
    assert result.status == 200


@pytest.mark.asyncio
async def test_probe_invalid_credentials():
    """Test probe with rejected credentials."""
    result = await AuthenticationProbe().probe(BASIC_AUTH_URL, Credentials("user", "wrong"))

    assert result.success is False
    assert result.status == 401
    assert result.error == "Invalid credentials - received 401 Unauthorized"


@pytest.mark.asyncio
async def test_probe_unreachable_host():
    """Test probe against a host that does not resolve."""
    result = await AuthenticationProbe(timeout=5000).probe(
        "https://this-domain-does-not-exist-12345.com", Credentials("user", "passwd")
    )

    assert result.success is False
    assert result.error
