#!/usr/bin/env python3
"""
Cookie Export Tool

Opens a visible browser on a platform's login page so you can sign in by
hand (including 2FA / captcha), then saves the session cookies where the
browser pool restores them from.

Usage:
    python scripts/export_cookies.py linkedin
    python scripts/export_cookies.py indeed --wait 60
    python scripts/export_cookies.py glassdoor --output /tmp/glassdoor.json
"""

import sys
import asyncio
import argparse
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from playwright.async_api import async_playwright

from adapters import get_adapter_class
from api.config import SUPPORTED_PLATFORMS, get_config
from browser import stealth
from browser.cookies import save_cookies


async def export_cookies(platform: str, wait_seconds: int = 0, output: str = None) -> Path:
    adapter_class = get_adapter_class(platform)
    settings = get_config()

    playwright = await async_playwright().start()
    browser = await playwright.chromium.launch(headless=False, args=stealth.launch_args())
    try:
        context = await browser.new_context(**stealth.context_options())
        page = await context.new_page()

        print(f"Opening {adapter_class.login_url}")
        await page.goto(adapter_class.login_url, wait_until="domcontentloaded", timeout=60000)

        if wait_seconds:
            print(f"Log in within {wait_seconds} seconds...")
            await asyncio.sleep(wait_seconds)
        else:
            await asyncio.get_running_loop().run_in_executor(
                None, input, "Log in in the browser window, then press Enter here..."
            )

        cookies = await context.cookies()
        print(f"Retrieved {len(cookies)} cookies")

        if output:
            target = Path(output)
            path = save_cookies(target.parent, target.stem, cookies)
        else:
            path = save_cookies(settings.COOKIES_DIR, platform, cookies)
        print(f"✅ Cookies saved to {path}")
        return path
    finally:
        await browser.close()
        await playwright.stop()


def main():
    parser = argparse.ArgumentParser(description="Export platform session cookies")
    parser.add_argument('platform', choices=SUPPORTED_PLATFORMS)
    parser.add_argument('--wait', type=int, default=0, help='Seconds to wait instead of prompting')
    parser.add_argument('--output', help='Cookie file path (default: COOKIES_DIR/<platform>.json)')
    args = parser.parse_args()

    asyncio.run(export_cookies(args.platform, args.wait, args.output))


if __name__ == "__main__":
    main()
