#!/usr/bin/env python3
"""
Ingest reference recipes into the corpus used on recipe cache misses.

Usage:
    python scripts/ingest_corpus.py corpus.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from recipe_cache.api.dependencies import build_embedding_provider
from recipe_cache.config import configure_logging
from recipe_cache.entities import CorpusRecipe
from recipe_cache.services import RecipeCorpus, VectorStoreRegistry


async def ingest(recipes: list[CorpusRecipe]) -> tuple[int, int]:
    embedding_provider = build_embedding_provider()
    registry = VectorStoreRegistry.create(embedding_provider)
    if not registry.enabled:
        raise RuntimeError("POSTGRES_URL or DATABASE_URL not set")

    corpus = RecipeCorpus(registry)
    try:
        ingested = await corpus.ingest(recipes)
        return ingested, await corpus.count()
    finally:
        close = getattr(embedding_provider, "close", None)
        if close is not None:
            await close()
        registry.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Ingest reference recipes into the corpus")
    parser.add_argument("path", type=Path, help="JSON array of {title, ingredients, directions, cuisine, region}")
    args = parser.parse_args()

    configure_logging()
    raw = json.loads(args.path.read_text(encoding="utf-8"))
    recipes = [CorpusRecipe.from_dict(item) for item in raw]
    recipes = [r for r in recipes if r.title and r.ingredients and r.directions]

    print(f"\n📚 Ingesting {len(recipes)} corpus recipes...")
    ingested, total = asyncio.run(ingest(recipes))
    print(f"  ✓ Ingested {ingested} (corpus now holds {total})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
