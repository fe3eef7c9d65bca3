import sys
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fakeredis import FakeServer, aioredis  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402

from app.analysis.fingerprint import fingerprint  # noqa: E402
from app.cache.durable_store import DurableCacheStore  # noqa: E402
from app.cache.fast_store import FastCacheStore  # noqa: E402
from app.cache.two_tier import TwoTierCache  # noqa: E402
from app.schemas.gap_analysis import AnalysisResult  # noqa: E402

RESULT = AnalysisResult(
    missing_skills=["Kubernetes"],
    steps="# Action Plan\n- Deploy a service\n- Add monitoring\n- Write runbooks",
    interview_questions="# Interview Prep\n- Q1\n- Q2\n- Q3",
)


class DurableCacheStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self.tmp.name) / "cache.db")
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.store = DurableCacheStore(self.db_path, ttl_hours=24, clock=lambda: self.now)

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def test_round_trip_before_expiry(self):
        self.store.upsert("hash-1", resume_text="resume", job_description="jd", result=RESULT)
        self.assertEqual(self.store.get("hash-1"), RESULT)

    def test_expired_row_is_never_returned(self):
        self.store.upsert("hash-1", resume_text="resume", job_description="jd", result=RESULT)
        self.now = self.now + timedelta(hours=24, seconds=1)
        self.assertIsNone(self.store.get("hash-1"))

    def test_upsert_replaces_existing_row(self):
        self.store.upsert("hash-1", resume_text="resume", job_description="jd", result=RESULT)
        updated = RESULT.model_copy(update={"missing_skills": ["Rust"]})
        self.store.upsert("hash-1", resume_text="resume", job_description="jd", result=updated)
        self.assertEqual(self.store.get("hash-1").missing_skills, ["Rust"])

    def test_purge_deletes_only_expired_rows(self):
        self.store.upsert("old", resume_text="r", job_description="j", result=RESULT)
        self.now = self.now + timedelta(hours=20)
        self.store.upsert("new", resume_text="r", job_description="j", result=RESULT)
        self.now = self.now + timedelta(hours=5)
        self.assertEqual(self.store.purge_expired(), 1)
        self.assertIsNotNone(self.store.get("new"))

    def test_recent_lists_newest_unexpired_rows_with_previews(self):
        self.store.upsert("stale", resume_text="old resume", job_description="old jd", result=RESULT)
        self.now = self.now + timedelta(hours=20)
        self.store.upsert("first", resume_text="r" * 150, job_description="short jd", result=RESULT)
        self.now = self.now + timedelta(minutes=5)
        self.store.upsert("second", resume_text="resume two", job_description="jd two", result=RESULT)
        self.now = self.now + timedelta(hours=5)

        items = self.store.recent(10)
        self.assertEqual(items[0].resume_preview, "resume two")
        self.assertEqual(len(items), 2)
        self.assertEqual(items[1].resume_preview, "r" * 100 + "...")
        self.assertEqual(items[1].jd_preview, "short jd")
        self.assertEqual(items[0].result_json, RESULT)
        self.assertGreater(items[0].created_at, items[1].created_at)

    def test_recent_respects_limit(self):
        for index in range(3):
            self.store.upsert(f"hash-{index}", resume_text=f"resume {index}", job_description="jd", result=RESULT)
            self.now = self.now + timedelta(seconds=1)
        self.assertEqual([item.resume_preview for item in self.store.recent(2)], ["resume 2", "resume 1"])


class TwoTierCacheTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.redis = aioredis.FakeRedis(server=FakeServer(), decode_responses=True)
        self.fast = FastCacheStore(self.redis, ttl_seconds=3600)
        self.durable = DurableCacheStore(str(Path(self.tmp.name) / "cache.db"), ttl_hours=24)
        self.cache = TwoTierCache(self.fast, self.durable)
        self.key = fingerprint("Python resume text", "Go job description")

    async def asyncTearDown(self):
        await self.redis.flushall()
        await self.redis.aclose()
        self.durable.close()
        self.tmp.cleanup()

    async def test_miss_on_empty_cache(self):
        self.assertIsNone(await self.cache.get(self.key))

    async def test_put_then_get_is_served_by_fast_tier(self):
        await self.cache.put(self.key, resume="r", job_description="j", result=RESULT)
        lookup = await self.cache.get(self.key)
        self.assertEqual(lookup.source, "memory")
        self.assertEqual(lookup.result, RESULT)
        ttl = await self.redis.ttl(f"gap:{self.key}")
        self.assertGreater(ttl, 3500)

    async def test_durable_hit_backfills_fast_tier(self):
        self.durable.upsert(self.key, resume_text="r", job_description="j", result=RESULT)

        lookup = await self.cache.get(self.key)
        self.assertEqual(lookup.source, "database")
        self.assertEqual(lookup.result, RESULT)

        self.assertIsNotNone(await self.redis.get(f"gap:{self.key}"))
        self.assertEqual((await self.cache.get(self.key)).source, "memory")

    async def test_fast_tier_failure_degrades_to_durable_tier(self):
        self.durable.upsert(self.key, resume_text="r", job_description="j", result=RESULT)
        broken_fast = FastCacheStore(AsyncMock(), ttl_seconds=60)
        broken_fast._redis.get.side_effect = RedisConnectionError("down")
        broken_fast._redis.setex.side_effect = RedisConnectionError("down")
        cache = TwoTierCache(broken_fast, self.durable)

        lookup = await cache.get(self.key)
        self.assertEqual(lookup.source, "database")

    async def test_write_failures_are_swallowed(self):
        broken_fast = FastCacheStore(AsyncMock(), ttl_seconds=60)
        broken_fast._redis.setex.side_effect = RedisConnectionError("down")
        broken_durable = AsyncMock()
        broken_durable.aupsert.side_effect = OSError("disk full")
        cache = TwoTierCache(broken_fast, broken_durable)

        with self.assertLogs("app.cache.two_tier", level="WARNING") as logs:
            await cache.put(self.key, resume="r", job_description="j", result=RESULT)
        output = "\n".join(logs.output)
        self.assertIn("durable_cache_write_failed", output)
        self.assertIn("fast_cache_write_failed", output)

    async def test_durable_write_happens_before_fast_write(self):
        order = []
        fast = AsyncMock()
        fast.set.side_effect = lambda *args, **kwargs: order.append("fast")
        durable = AsyncMock()
        durable.aupsert.side_effect = lambda *args, **kwargs: order.append("durable")

        await TwoTierCache(fast, durable).put(self.key, resume="r", job_description="j", result=RESULT)
        self.assertEqual(order, ["durable", "fast"])


if __name__ == "__main__":
    unittest.main()
