"""
Exported cookie files.

Cookies are stored per platform as Playwright cookie JSON
(`<COOKIES_DIR>/<platform>.json`), written by scripts/export_cookies.py.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("name", "value")


def cookie_file(cookies_dir: Union[str, Path], platform: str) -> Path:
    return Path(cookies_dir) / f"{platform}.json"


def load_cookies(cookies_dir: Union[str, Path], platform: str) -> List[Dict[str, Any]]:
    """Load exported cookies for a platform; missing file means no cookies."""
    path = cookie_file(cookies_dir, platform)
    if not path.exists():
        return []

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("cookies", [])

    cookies = []
    for cookie in data:
        if not all(key in cookie for key in REQUIRED_KEYS):
            continue
        if "url" not in cookie and not ("domain" in cookie and "path" in cookie):
            continue
        # Chrome exports use -1 for session cookies
        if cookie.get("expires") is not None and cookie["expires"] < 0:
            cookie = {k: v for k, v in cookie.items() if k != "expires"}
        cookies.append(cookie)
    return cookies


def save_cookies(cookies_dir: Union[str, Path], platform: str, cookies: List[Dict[str, Any]]) -> Path:
    path = cookie_file(cookies_dir, platform)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cookies, indent=2), encoding="utf-8")
    logger.info(f"Saved {len(cookies)} cookies for {platform} to {path}")
    return path
