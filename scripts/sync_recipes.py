#!/usr/bin/env python3
"""
Sync exported recipes to pgvector for similar-recipe search.

Reads a JSON array of saved recipes (camelCase keys, as exported from the
recipe database), estimates the embedding cost and indexes them in batches.

Usage:
    python scripts/sync_recipes.py recipes.json --dry-run
    python scripts/sync_recipes.py recipes.json --batch 20 --delay 500
"""

import argparse
import asyncio
import json
import math
import sys
from pathlib import Path

from recipe_cache.api.dependencies import build_embedding_provider
from recipe_cache.config import configure_logging, settings
from recipe_cache.entities import IndexedRecipe
from recipe_cache.services import SimilarRecipesIndex, VectorStoreRegistry
from recipe_cache.services.similar_recipes import SYNC_BATCH_SIZE, recipe_to_embedding_text

# text-embedding-3-small: $0.02 per 1M input tokens
COST_PER_1M_TOKENS = 0.02
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def format_cost(dollars: float) -> str:
    if dollars < 0.01:
        return "<$0.01"
    return f"${dollars:.2f}"


def load_recipes(path: Path) -> list[IndexedRecipe]:
    """Load recipes, filling the defaults saved recipes are indexed with."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    recipes = []
    for item in raw:
        data = {
            "recipeTitle": "Untitled",
            "cuisineType": "Unknown",
            "cookingDifficulty": "Unknown",
            "cookingTime": "Unknown",
            "username": "Anonymous Chef",
            **{k: v for k, v in item.items() if v not in (None, "")},
        }
        recipe = IndexedRecipe.from_dict(data)
        if recipe.id and recipe_to_embedding_text(recipe).strip():
            recipes.append(recipe)
    return recipes


async def sync(recipes: list[IndexedRecipe], batch_size: int, delay_ms: int, full: bool) -> int:
    """Index recipes batch by batch, truncating only before the first batch."""
    embedding_provider = build_embedding_provider()
    registry = VectorStoreRegistry.create(embedding_provider)
    index = SimilarRecipesIndex(registry)
    if not registry.enabled:
        raise RuntimeError("POSTGRES_URL or DATABASE_URL not set")

    synced = 0
    try:
        for start in range(0, len(recipes), batch_size):
            batch = recipes[start : start + batch_size]
            synced += await index.index_many(batch, clear_first=full and start == 0)
            print(f"  ✓ Batch {start // batch_size + 1}: {synced}/{len(recipes)} recipes")
            if delay_ms and start + batch_size < len(recipes):
                await asyncio.sleep(delay_ms / 1000)
        print(f"\n📊 Rows in index: {await index.count()}")
    finally:
        close = getattr(embedding_provider, "close", None)
        if close is not None:
            await close()
        registry.close()
    return synced


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync saved recipes to the similar-recipes index")
    parser.add_argument("path", type=Path, help="JSON array of saved recipes")
    parser.add_argument("--dry-run", action="store_true", help="Only print the cost estimate")
    parser.add_argument("--batch", type=int, default=SYNC_BATCH_SIZE, help="Recipes per batch")
    parser.add_argument("--delay", type=int, default=500, help="Milliseconds between batches")
    parser.add_argument("--limit", type=int, default=0, help="Only sync the first N recipes")
    parser.add_argument(
        "--incremental",
        action="store_true",
        help="Append to the index instead of replacing it",
    )
    args = parser.parse_args()

    configure_logging()
    recipes = load_recipes(args.path)
    to_sync = recipes[: args.limit] if args.limit > 0 else recipes

    total_tokens = sum(estimate_tokens(recipe_to_embedding_text(r)) for r in to_sync)
    cost = total_tokens / 1_000_000 * COST_PER_1M_TOKENS

    print("\n📦 Recipe sync to pgvector (similar recipes)\n")
    print(f"Recipes to sync: {len(to_sync)} (of {len(recipes)})")
    print(f"Est. tokens:     ~{total_tokens:,}")
    print(f"Est. cost:       {format_cost(cost)} ({settings.embedding_model})")
    print(f"Batch size:      {args.batch}")
    print(f"Mode:            {'incremental' if args.incremental else 'full re-sync'}\n")

    if args.dry_run:
        print("🔍 Dry run - no changes made. Remove --dry-run to sync.")
        return 0

    synced = asyncio.run(sync(to_sync, args.batch, args.delay, full=not args.incremental))
    print(f"\n✓ Synced {synced} recipes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
