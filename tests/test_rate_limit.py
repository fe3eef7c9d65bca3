import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fakeredis import FakeServer, aioredis  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402

from app.core.rate_limit import RateLimiter  # noqa: E402


class RateLimiterTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.redis = aioredis.FakeRedis(server=FakeServer(), decode_responses=True)
        self.limiter = RateLimiter(self.redis, limit=60, window_seconds=60)

    async def asyncTearDown(self):
        await self.redis.flushall()
        await self.redis.aclose()

    async def test_sixtieth_request_allowed_and_sixty_first_denied(self):
        decisions = [await self.limiter.admit("203.0.113.7") for _ in range(61)]
        self.assertTrue(all(decision.allowed for decision in decisions[:60]))
        self.assertEqual(decisions[59].remaining, 0)

        denied = decisions[60]
        self.assertFalse(denied.allowed)
        self.assertIsInstance(denied.retry_after, int)
        self.assertGreaterEqual(denied.retry_after, 1)
        self.assertLessEqual(denied.retry_after, 60)

    async def test_clients_are_counted_separately(self):
        for _ in range(60):
            await self.limiter.admit("198.51.100.1")
        self.assertFalse((await self.limiter.admit("198.51.100.1")).allowed)
        self.assertTrue((await self.limiter.admit("198.51.100.2")).allowed)

    async def test_counter_key_expires_with_the_window(self):
        await self.limiter.admit("192.0.2.10")
        ttl = await self.redis.ttl("ratelimit:192.0.2.10")
        self.assertGreater(ttl, 0)
        self.assertLessEqual(ttl, 60)

    async def test_store_unavailable_fails_open(self):
        broken = MagicMock()
        broken.pipeline.side_effect = RedisConnectionError("connection refused")
        limiter = RateLimiter(broken, limit=1, window_seconds=60)

        with self.assertLogs("app.core.rate_limit", level="WARNING") as logs:
            first = await limiter.admit("192.0.2.20")
            second = await limiter.admit("192.0.2.20")
        self.assertTrue(first.allowed)
        self.assertTrue(second.allowed)
        self.assertIn("rate_limit_store_unavailable", logs.output[0])

    async def test_disabled_limiter_always_allows(self):
        limiter = RateLimiter(self.redis, limit=1, window_seconds=60, enabled=False)
        for _ in range(5):
            self.assertTrue((await limiter.admit("192.0.2.30")).allowed)


if __name__ == "__main__":
    unittest.main()
