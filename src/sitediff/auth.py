"""
Credential resolution and authentication probing for protected sites.

Credentials are resolved per domain from explicit values, environment
variables or an interactive prompt, and checked against the site root
before crawling starts.
"""

import getpass
import logging
import os
import re
from collections.abc import Callable, Mapping
from urllib.parse import urlparse

import httpx

from .models import AuthProbeResult, Credentials

logger = logging.getLogger(__name__)

ENV_USERNAME = "COMPARATOR_USERNAME"
ENV_PASSWORD = "COMPARATOR_PASSWORD"
ENV_USER_PREFIX = "COMPARATOR_USER_"
ENV_PASS_PREFIX = "COMPARATOR_PASS_"


class AuthenticationError(Exception):
    """Raised when credentials are rejected by a site."""

    pass


def domain_key(domain: str) -> str:
    """
    Build the environment-variable suffix for a domain.

    ``https://staging.example.com`` becomes ``STAGING_EXAMPLE_COM``.
    """
    hostname = urlparse(domain).hostname or ""
    return re.sub(r"[^a-zA-Z0-9]", "_", hostname).upper()


def resolve_credentials(
    domain: str,
    username: str | None = None,
    password: str | None = None,
    environ: Mapping[str, str] | None = None,
    interactive: bool = True,
    prompt: Callable[[str], str] = input,
    secret_prompt: Callable[[str], str] = getpass.getpass,
) -> Credentials | None:
    """
    Resolve HTTP credentials for a domain.

    Order: explicit values, per-domain environment variables, shared
    environment variables, then an interactive prompt.

    Args:
        domain: Site root, e.g. "https://staging.example.com"
        username: Explicit username (optional)
        password: Explicit password (optional)
        environ: Environment mapping (defaults to os.environ)
        interactive: Whether to prompt when nothing else is configured
        prompt: Function reading the username
        secret_prompt: Function reading the password without echo

    Returns:
        Credentials, or None when the site needs no authentication
    """
    if username and password:
        return Credentials(username=username, password=password)

    env = os.environ if environ is None else environ
    key = domain_key(domain)

    env_username = env.get(f"{ENV_USER_PREFIX}{key}") or env.get(ENV_USERNAME)
    env_password = env.get(f"{ENV_PASS_PREFIX}{key}") or env.get(ENV_PASSWORD)

    if env_username and env_password:
        logger.info("Using credentials from environment for %s", domain)
        return Credentials(username=env_username, password=env_password)

    if not interactive:
        return None

    print(f"\nHTTP Authentication may be required for {domain}")
    entered_username = prompt("Username (press enter to skip): ").strip()
    if not entered_username:
        return None

    entered_password = secret_prompt("Password: ")
    return Credentials(username=entered_username, password=entered_password)


class AuthenticationProbe:
    """
    Checks credentials by requesting the site root.

    Uses httpx with basic auth; redirects are followed so a bounce to a
    login page can be detected.
    """

    def __init__(self, user_agent: str | None = None, timeout: int = 30000):
        """
        Initialize the probe.

        Args:
            user_agent: Custom User-Agent header (optional)
            timeout: Request timeout in milliseconds
        """
        self.user_agent = user_agent
        self.timeout = timeout

    async def probe(self, domain: str, credentials: Credentials) -> AuthProbeResult:
        """
        Request the domain root with the given credentials.

        Args:
            domain: Site root URL
            credentials: Credentials to test

        Returns:
            AuthProbeResult describing success or the failure reason
        """
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}

        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.timeout / 1000.0,
                headers=headers,
                auth=httpx.BasicAuth(credentials.username, credentials.password),
            ) as client:
                response = await client.get(domain)
        except httpx.TimeoutException:
            return AuthProbeResult(success=False, error=f"Timeout after {self.timeout}ms")
        except httpx.HTTPError as e:
            return AuthProbeResult(success=False, error=f"HTTP error: {str(e)}")

        return evaluate_probe_response(
            domain, response.status_code, str(response.url), response.reason_phrase
        )


def evaluate_probe_response(
    domain: str, status: int, final_url: str, reason: str = ""
) -> AuthProbeResult:
    """Classify an authentication probe response."""
    if status == 401:
        return AuthProbeResult(
            success=False, status=status, error="Invalid credentials - received 401 Unauthorized"
        )
    if status == 403:
        return AuthProbeResult(
            success=False, status=status, error="Access forbidden - received 403 Forbidden"
        )
    if status >= 400:
        return AuthProbeResult(success=False, status=status, error=f"HTTP {status}: {reason}")

    if "login" in final_url.lower() and "login" not in domain.lower():
        return AuthProbeResult(
            success=False,
            status=status,
            error="Redirected to login page - authentication may be required",
        )

    return AuthProbeResult(success=True, status=status)
