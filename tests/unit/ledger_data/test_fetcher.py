import unittest

from ledger_data.config import BackoffPolicy
from ledger_data.errors import LedgerReadError, NotFoundError, TransientFailure
from ledger_data.fetcher import ResilientFetcher


class _RecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay_s: float) -> None:
        self.delays.append(delay_s)


class _ScriptedOperation:
    def __init__(self, outcomes: list[object]) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class TestBackoffPolicy(unittest.TestCase):
    def test_default_schedule_doubles(self) -> None:
        self.assertEqual(BackoffPolicy().delays(), (2000, 4000))

    def test_cap(self) -> None:
        policy = BackoffPolicy(max_retries=4, initial_delay_ms=100, max_delay_ms=300)
        self.assertEqual(policy.delays(), (100, 200, 300, 300))


class TestResilientFetcher(unittest.IsolatedAsyncioTestCase):
    async def test_rate_limited_twice_then_success(self) -> None:
        sleeper = _RecordingSleeper()
        fetcher = ResilientFetcher(sleeper=sleeper)
        operation = _ScriptedOperation(
            [RuntimeError("429 Too Many Requests"), RuntimeError("429"), {"ok": True}]
        )

        result = await fetcher.fetch(operation)

        self.assertEqual(result, {"ok": True})
        self.assertEqual(operation.calls, 3)
        self.assertEqual(sleeper.delays, [2.0, 4.0])

    async def test_not_found_is_not_retried(self) -> None:
        sleeper = _RecordingSleeper()
        fetcher = ResilientFetcher(sleeper=sleeper)
        operation = _ScriptedOperation([RuntimeError("Account does not exist")])

        with self.assertRaises(NotFoundError):
            await fetcher.fetch(operation)

        self.assertEqual(operation.calls, 1)
        self.assertEqual(sleeper.delays, [])

    async def test_other_errors_surface_immediately(self) -> None:
        sleeper = _RecordingSleeper()
        fetcher = ResilientFetcher(sleeper=sleeper)
        operation = _ScriptedOperation([RuntimeError("connection reset")])

        with self.assertRaises(LedgerReadError) as ctx:
            await fetcher.fetch(operation)

        self.assertEqual(operation.calls, 1)
        self.assertEqual(sleeper.delays, [])
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    async def test_exhausted_rate_limit_becomes_transient(self) -> None:
        sleeper = _RecordingSleeper()
        fetcher = ResilientFetcher(sleeper=sleeper)
        operation = _ScriptedOperation([RuntimeError("429")] * 3)

        with self.assertRaises(TransientFailure):
            await fetcher.fetch(operation)

        self.assertEqual(operation.calls, 3)
        self.assertEqual(sleeper.delays, [2.0, 4.0])

    async def test_typed_error_passes_through_unchanged(self) -> None:
        fetcher = ResilientFetcher(sleeper=_RecordingSleeper())
        original = NotFoundError("could not find account")
        operation = _ScriptedOperation([original])

        with self.assertRaises(NotFoundError) as ctx:
            await fetcher.fetch(operation)

        self.assertIs(ctx.exception, original)

    async def test_zero_retries(self) -> None:
        sleeper = _RecordingSleeper()
        fetcher = ResilientFetcher(BackoffPolicy(max_retries=0), sleeper=sleeper)
        operation = _ScriptedOperation([RuntimeError("429")])

        with self.assertRaises(TransientFailure):
            await fetcher.fetch(operation)
        self.assertEqual(sleeper.delays, [])
