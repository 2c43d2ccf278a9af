"""
Outbound proxy selection for browser sessions.

The proxy set is loaded once from configuration. Round-robin keeps a single
cursor; random picks uniformly per call. A disabled feature or an empty set
always yields None, which callers treat as "no proxy".
"""

import logging
import random
import re
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

ROUND_ROBIN = "round-robin"
RANDOM = "random"

_CREDENTIALS_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*)://[^@/]+@")


def mask_proxy_credentials(proxy: Optional[str]) -> Optional[str]:
    """Replace the user:password segment of a proxy URL with ****:****."""
    if not proxy:
        return proxy
    return _CREDENTIALS_PATTERN.sub(r"\1://****:****@", proxy)


def to_playwright_proxy(proxy: str) -> Dict[str, str]:
    """Convert a proxy URL into Playwright's launch `proxy` option."""
    parsed = urlparse(proxy if "://" in proxy else f"http://{proxy}")
    server = f"{parsed.scheme}://{parsed.hostname}"
    if parsed.port:
        server += f":{parsed.port}"

    options = {"server": server}
    if parsed.username:
        options["username"] = parsed.username
    if parsed.password:
        options["password"] = parsed.password
    return options


class ProxyManager:
    """Chooses a proxy endpoint per automation session."""

    def __init__(self, proxies: Sequence[str] = (), enabled: bool = True, strategy: str = ROUND_ROBIN):
        if strategy not in (ROUND_ROBIN, RANDOM):
            raise ValueError(f"Unsupported proxy rotation strategy: {strategy}")
        self.proxies: List[str] = [p for p in proxies if p]
        self.enabled = enabled
        self.strategy = strategy
        self._cursor = 0

        if self.active:
            logger.info(f"Proxy rotation enabled: {len(self.proxies)} endpoints ({strategy})")

    @classmethod
    def from_config(cls, app_config) -> "ProxyManager":
        return cls(
            proxies=app_config.PROXY_LIST,
            enabled=app_config.USE_PROXIES,
            strategy=app_config.PROXY_ROTATION,
        )

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.proxies)

    def next(self) -> Optional[str]:
        """Return the next proxy endpoint, or None when proxies are off."""
        if not self.active:
            return None

        if self.strategy == RANDOM:
            proxy = random.choice(self.proxies)
        else:
            proxy = self.proxies[self._cursor % len(self.proxies)]
            self._cursor = (self._cursor + 1) % len(self.proxies)

        logger.debug(f"Selected proxy {mask_proxy_credentials(proxy)}")
        return proxy
