#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from laakhay.cache import StoreCredentials, get_cache_client


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Round-trip a value through the Redis cache")
    p.add_argument("host", nargs="?", default="localhost")
    p.add_argument("port", nargs="?", type=int, default=6379)
    p.add_argument("preset", nargs="?", default="test", choices=["redis", "test"])
    p.add_argument("size", nargs="?", type=int, default=2000)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO)
    cache = await get_cache_client(StoreCredentials(host=args.host, port=args.port), args.preset)
    key = {"example": "quickstart", "size": args.size}
    value = [f"item-{i}" for i in range(args.size)]
    try:
        print(f"set    : {await cache.set(key, value)}")
        result = await cache.get(key)
        print(f"get    : {len(result.value)} items, written at {result.timestamp}")
        print(f"ttl    : {await cache.ttl(key)}s")
        print(f"delete : {await cache.delete(key)}")
    finally:
        await cache.client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
