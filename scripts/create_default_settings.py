#!/usr/bin/env python3
"""Create the default site settings row if the database has none.

Usage:
    python scripts/create_default_settings.py
"""

from __future__ import annotations

import asyncio

from _bootstrap import configure_logging, open_repository

from cms_backend.config import PROJECT_ROOT, get_settings, resolve_under
from cms_backend.services.images import ImageProcessor
from cms_backend.services.site_settings import SiteSettingsService


async def ensure_settings() -> bool:
    settings = get_settings()
    async with open_repository() as repository:
        images = ImageProcessor(resolve_under(PROJECT_ROOT, settings.upload_dir))
        record, created = await SiteSettingsService(repository, images).ensure_defaults()
        print(f"  Company: {record['company_name']}")
        print(f"  Contact: {record['contact_email']}")
    return created


def main() -> None:
    configure_logging()
    if asyncio.run(ensure_settings()):
        print("Default site settings created.")
    else:
        print("Site settings already exist; nothing to do.")


if __name__ == "__main__":
    main()
