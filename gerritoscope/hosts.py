"""Well-known Gerrit host aliases and resolution logic."""

from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

from .errors import UnknownHostError

# Short alias -> canonical base URL for public Gerrit instances
KNOWN_HOSTS: Mapping[str, str] = MappingProxyType({
    'chromium': 'https://chromium-review.googlesource.com',
    'android': 'https://android-review.googlesource.com',
    'go': 'https://go-review.googlesource.com',
    'fuchsia': 'https://fuchsia-review.googlesource.com',
    'skia': 'https://skia-review.googlesource.com',
    'gerrit': 'https://gerrit-review.googlesource.com',
    'wikimedia': 'https://gerrit.wikimedia.org',
    'qt': 'https://codereview.qt-project.org',
    'libreoffice': 'https://gerrit.libreoffice.org',
    'onap': 'https://gerrit.onap.org',
    'webrtc': 'https://webrtc-review.googlesource.com',
})


def resolve(token: str, known_hosts: Mapping[str, str] = KNOWN_HOSTS) -> Tuple[str, str]:
    """Resolve a single host token to an ``(alias, base_url)`` pair.

    A full URL keeps its own address (minus any trailing slash) and is
    aliased to its short name if it is a known host, otherwise to its
    hostname plus any path. Anything else must be a known short alias.

    Args:
        token: Short alias such as ``chromium`` or an ``http(s)://`` URL
        known_hosts: Alias table to resolve against

    Returns:
        Tuple of alias and base URL

    Raises:
        UnknownHostError: If the token is neither a URL nor a known alias
    """
    token = token.strip()

    if token.startswith('http://') or token.startswith('https://'):
        url = token.rstrip('/')
        for alias, known_url in known_hosts.items():
            if known_url == url:
                return alias, url
        return url.split('://', 1)[1], url

    if token in known_hosts:
        return token, known_hosts[token]

    known = ', '.join(known_hosts)
    raise UnknownHostError(f"unknown host {token!r}; pass a full URL or one of: {known}")


def expand(specs: Iterable[str], known_hosts: Mapping[str, str] = KNOWN_HOSTS) -> List[Tuple[str, str]]:
    """Expand ``--hosts`` values into ordered ``(alias, base_url)`` pairs.

    Each value may hold several comma-separated tokens. Hosts repeated under
    a different spelling are only kept once, at their first position.
    Distinct URLs that resolve to the same alias (``http://`` and
    ``https://`` of one host) get a ``#2``, ``#3``... suffix so every alias
    names exactly one host.
    """
    seen = set()
    aliases = set()
    resolved = []
    for spec in specs:
        for token in spec.split(','):
            if not token.strip():
                continue
            alias, url = resolve(token, known_hosts)
            if url in seen:
                continue
            seen.add(url)
            unique, n = alias, 1
            while unique in aliases:
                n += 1
                unique = f"{alias}#{n}"
            aliases.add(unique)
            resolved.append((unique, url))
    return resolved
