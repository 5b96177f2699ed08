"""Verify restaurant slugs and repair missing slugs or registry entries."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from config import config
from slugs import GenerationExhausted, generate_unique_slug
from store import SlugConflict, YamlMenuStore

logger = logging.getLogger(__name__)


@dataclass
class FixReport:
    checked: int = 0
    slugs_assigned: int = 0
    registry_created: int = 0
    not_public: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)


async def verify_and_fix_all_slugs(
    store: YamlMenuStore, *, dry_run: bool = False
) -> FixReport:
    """Check every restaurant and fix what can be fixed.

    Restaurants without a slug get one generated from their name. Current
    slugs missing from the registry are registered. Registry entries owned by
    another restaurant are reported, never overwritten.
    """

    report = FixReport()
    for restaurant in await store.list_restaurants():
        report.checked += 1
        restaurant_id = str(restaurant.get("id"))
        name = restaurant.get("name", "")
        slug = restaurant.get("slug")

        if not slug or not restaurant.get("normalized_slug"):
            async def exists(candidate: str, rid: str = restaurant_id) -> bool:
                return await store.exists_slug(candidate, exclude_id=rid)

            try:
                slug = await generate_unique_slug(name, exists)
            except GenerationExhausted as exc:
                logger.error("Could not generate slug for %s: %s", restaurant_id, exc)
                report.errors.append({"restaurant": restaurant_id, "issue": str(exc)})
                continue
            logger.info("Assigning slug %s to %s", slug, restaurant_id)
            if not dry_run:
                try:
                    await store.set_restaurant_slug(restaurant_id, slug)
                except SlugConflict as exc:
                    report.errors.append(
                        {"restaurant": restaurant_id, "issue": str(exc)}
                    )
                    continue
            report.slugs_assigned += 1
        else:
            entry = await store.registry_entry(slug)
            if entry is None:
                logger.info("Registering missing slug %s for %s", slug, restaurant_id)
                if not dry_run:
                    await store.register_slug(restaurant_id, slug)
                report.registry_created += 1
            elif str(entry.get("restaurant_id")) != restaurant_id:
                logger.warning(
                    "Registry slug %s points at %s instead of %s",
                    slug,
                    entry.get("restaurant_id"),
                    restaurant_id,
                )
                report.errors.append(
                    {
                        "restaurant": restaurant_id,
                        "issue": f"registry entry {slug} points at another restaurant",
                    }
                )

        if not restaurant.get("is_public"):
            logger.warning("Restaurant %s is not public", restaurant_id)
            report.not_public.append(restaurant_id)

    return report


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Verify restaurant slugs and repair the slug registry."
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="Optional path to the store YAML. Defaults to the configured STORE_PATH.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing the store.",
    )
    return parser.parse_args()


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    target = Path(args.path) if args.path else Path(config.STORE_PATH)
    report = asyncio.run(
        verify_and_fix_all_slugs(YamlMenuStore(target), dry_run=args.dry_run)
    )
    print(
        f"Checked {report.checked} restaurants: "
        f"{report.slugs_assigned} slugs assigned, "
        f"{report.registry_created} registry entries created, "
        f"{len(report.not_public)} not public, {len(report.errors)} errors"
    )
    for error in report.errors:
        print(f"  - {error['restaurant']}: {error['issue']}")
    return 1 if report.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
