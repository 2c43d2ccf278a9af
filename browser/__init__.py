"""
Browser identity and session helpers for local Playwright browsers.

- stealth: user agents, viewports, launch args and the init script
- cookies: exported per-platform cookie files
"""
