# scripts/check_redis.py

import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from unique_jobs.infrastructure.redis_client import RedisClient
from unique_jobs.locking.locksmith import Locksmith
from unique_jobs.locking.request import LockRequest
from unique_jobs.scripts.engine import ScriptEngine


async def check():
    r = RedisClient()
    engine = ScriptEngine(r.client)
    await engine.preload()

    first = Locksmith(LockRequest(digest="uniquejobs:check", jid="check-1", retry_count=0), engine=engine)
    second = Locksmith(LockRequest(digest="uniquejobs:check", jid="check-2", retry_count=0), engine=engine)

    print("Ping:", await r.ping())
    print("First lock:", await first.lock())
    print("Second lock:", await second.lock())
    print("First unlock:", await first.unlock())
    print("Second lock:", await second.lock())
    print("Second unlock:", await second.unlock())
    print("Deleted keys:", await second.force_delete())

    await r.close()


asyncio.run(check())
