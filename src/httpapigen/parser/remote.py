"""Security gate and HTTP fetching for external ``$ref`` targets.

External references are only followed when the caller opts in
(``ResolutionOptions.resolve_external``). Even then every URL must pass
:func:`check_external_url` before any request is made:

* the scheme must be ``http`` or ``https`` (``file:`` and scheme-less
  relative paths are rejected so document content cannot read local files);
* the host must not be a loopback, private, link-local or unspecified
  address, ``localhost`` or a ``.local``/``.localhost`` name;
* when an allow-list is configured, the host must equal one of its domains
  or be a subdomain of one.

:class:`HttpxFetcher` applies the same gate to every redirect hop, and uses
a bounded timeout and redirect cap.
"""

from __future__ import annotations

import ipaddress
from typing import Optional, Protocol, Sequence
from urllib.parse import urlsplit

import httpx

from httpapigen.exceptions import ErrorKind, ResolutionError

_ALLOWED_SCHEMES = frozenset({"http", "https"})

_BLOCKED_HOSTNAMES = frozenset({"localhost"})
_BLOCKED_SUFFIXES = (".localhost", ".local")

_BLOCKED_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "0.0.0.0/32",
        "127.0.0.0/8",
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "::/128",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)


def is_private_host(hostname: str) -> bool:
    """Return ``True`` if *hostname* names this machine or a private network.

    Examples::

        >>> is_private_host("localhost")
        True
        >>> is_private_host("10.1.2.3")
        True
        >>> is_private_host("api.example.com")
        False
    """
    host = hostname.lower().rstrip(".")
    if host in _BLOCKED_HOSTNAMES or host.endswith(_BLOCKED_SUFFIXES):
        return True

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    return any(address in network for network in _BLOCKED_NETWORKS)


def is_allowed_domain(hostname: str, allowed_domains: Sequence[str]) -> bool:
    """Check *hostname* against an allow-list. An empty list allows any host."""
    if not allowed_domains:
        return True
    host = hostname.lower().rstrip(".")
    for domain in allowed_domains:
        domain = domain.lower().strip().lstrip(".")
        if host == domain or host.endswith(f".{domain}"):
            return True
    return False


def check_external_url(url: str, allowed_domains: Sequence[str] = ()) -> str:
    """Run the security gate for one external reference.

    Args:
        url: Absolute URL of the referenced document (fragment allowed).
        allowed_domains: Optional domain allow-list.

    Returns:
        The lowercased hostname.

    Raises:
        ResolutionError: ``UNSAFE_PROTOCOL``, ``PRIVATE_ADDRESS`` or
            ``DOMAIN_NOT_ALLOWED``; ``FETCH_ERROR`` if the URL has no host.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
    except ValueError as exc:
        raise ResolutionError(
            ErrorKind.FETCH_ERROR,
            f"Invalid URL in external reference: {url}",
            cause=exc,
        ) from exc

    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        shown = f"'{scheme}:'" if scheme else "(none)"
        raise ResolutionError(
            ErrorKind.UNSAFE_PROTOCOL,
            f"Unsafe protocol {shown} in reference: {url}",
        )

    if not hostname:
        raise ResolutionError(
            ErrorKind.FETCH_ERROR,
            f"Invalid URL in external reference: {url}",
        )

    if is_private_host(hostname):
        raise ResolutionError(
            ErrorKind.PRIVATE_ADDRESS,
            f"Private/local address not allowed in external reference: {url}",
        )

    if not is_allowed_domain(hostname, allowed_domains):
        raise ResolutionError(
            ErrorKind.DOMAIN_NOT_ALLOWED,
            f"Domain '{hostname}' not in allowed domains list. "
            f"Allowed: {', '.join(allowed_domains)}",
        )

    return hostname


class Fetcher(Protocol):
    """Network capability used to load external documents."""

    def fetch(self, url: str) -> str:
        """Return the body of *url* as text.

        Raises:
            ResolutionError: ``NETWORK_TIMEOUT`` or ``FETCH_ERROR``.
        """
        ...


class HttpxFetcher:
    """:class:`Fetcher` backed by a short-lived :class:`httpx.Client`.

    Args:
        timeout: Seconds allowed for each request.
        max_redirects: Redirect hops to follow. ``0`` treats any redirect
            response as a failure.
        allowed_domains: Allow-list re-checked on every redirect hop.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        timeout: float = 5.0,
        max_redirects: int = 0,
        allowed_domains: Sequence[str] = (),
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.allowed_domains = tuple(allowed_domains)
        self._transport = transport

    def _check_request(self, request: httpx.Request) -> None:
        check_external_url(str(request.url), self.allowed_domains)

    def fetch(self, url: str) -> str:
        client = httpx.Client(
            timeout=self.timeout,
            follow_redirects=self.max_redirects > 0,
            max_redirects=self.max_redirects,
            transport=self._transport,
            event_hooks={"request": [self._check_request]},
        )
        try:
            with client:
                response = client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.TimeoutException as exc:
            raise ResolutionError(
                ErrorKind.NETWORK_TIMEOUT,
                f"Timed out after {self.timeout}s fetching {url}",
                cause=exc,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ResolutionError(
                ErrorKind.FETCH_ERROR,
                f"HTTP {exc.response.status_code} fetching {url}",
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise ResolutionError(
                ErrorKind.FETCH_ERROR,
                f"Failed to fetch {url}: {exc}",
                cause=exc,
            ) from exc
