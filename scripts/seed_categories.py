#!/usr/bin/env python3
"""Seed the standard project categories.

Existing categories (matched by name) are left untouched, so the script can
be re-run safely.

Usage:
    python scripts/seed_categories.py
"""

from __future__ import annotations

import asyncio

from _bootstrap import configure_logging, open_repository

from cms_backend.services.categories import CategoryService

DEFAULT_CATEGORIES = (
    "Residential",
    "Commercial",
    "Cultural",
    "Educational",
    "Healthcare",
    "Hospitality",
    "Industrial",
    "Infrastructure",
    "Mixed-Use",
    "Public Spaces",
    "Religious",
    "Retail",
    "Sports & Recreation",
    "Urban Planning",
)


async def seed() -> int:
    created = 0
    async with open_repository() as repository:
        service = CategoryService(repository)
        for name in DEFAULT_CATEGORIES:
            if await repository.find_one("categories", "name", name) is not None:
                print(f"  Exists:  {name}")
                continue
            category = await service.create(name)
            print(f"  Created: {name} ({category['slug']})")
            created += 1
    return created


def main() -> None:
    configure_logging()
    created = asyncio.run(seed())
    print(f"Seeded {created} new categor{'y' if created == 1 else 'ies'}.")


if __name__ == "__main__":
    main()
