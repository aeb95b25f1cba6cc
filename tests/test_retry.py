"""
Tests for retrying transient store failures
"""
import pytest

from solo_hunter.core.exceptions import PermanentStoreError, TransientStoreError
from solo_hunter.database import InMemoryDocumentStore
from solo_hunter.services import UserDataManager
from solo_hunter.utils.decorators import retry_on_transient


class FlakyStore(InMemoryDocumentStore):
    """Хранилище, первые N чтений которого завершаются временной ошибкой"""

    def __init__(self, failures: int, error=TransientStoreError):
        super().__init__()
        self.failures = failures
        self.error = error
        self.get_calls = 0

    async def get(self, collection, doc_id):
        self.get_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise self.error("store unavailable")
        return await super().get(collection, doc_id)


class TestRetryDecorator:

    async def test_retries_once_then_succeeds(self):
        calls = []

        @retry_on_transient(attempts=1, delay=0)
        async def operation():
            calls.append(1)
            if len(calls) == 1:
                raise TransientStoreError("blip")
            return "ok"

        assert await operation() == "ok"
        assert len(calls) == 2

    async def test_gives_up_after_single_retry(self):
        calls = []

        @retry_on_transient(attempts=1, delay=0)
        async def operation():
            calls.append(1)
            raise TransientStoreError("down")

        with pytest.raises(TransientStoreError):
            await operation()
        assert len(calls) == 2

    async def test_permanent_errors_not_retried(self):
        calls = []

        @retry_on_transient(attempts=1, delay=0)
        async def operation():
            calls.append(1)
            raise PermanentStoreError("denied")

        with pytest.raises(PermanentStoreError):
            await operation()
        assert len(calls) == 1

    async def test_defaults_from_config(self):
        """Без аргументов используется config.store (пауза обнулена фикстурой)"""
        calls = []

        @retry_on_transient()
        async def operation():
            calls.append(1)
            raise TransientStoreError("down")

        with pytest.raises(TransientStoreError):
            await operation()
        assert len(calls) == 2


class TestDataManagerRetry:

    async def test_read_survives_one_transient_failure(self):
        store = FlakyStore(failures=0)
        data = UserDataManager(store)
        await data.create_user_profile("hunter-1", "hunter@example.com")

        store.failures = 1
        store.get_calls = 0
        profile = await data.get_user_profile()

        assert profile.uid == "hunter-1"
        assert store.get_calls == 2

    async def test_read_fails_after_two_transient_failures(self):
        store = FlakyStore(failures=0)
        data = UserDataManager(store)
        await data.create_user_profile("hunter-1")

        store.failures = 2
        with pytest.raises(TransientStoreError):
            await data.get_user_profile()

    async def test_cache_hit_skips_store(self, cache):
        store = FlakyStore(failures=0)
        data = UserDataManager(store, cache)
        await data.create_user_profile("hunter-1")
        await data.get_user_profile()

        store.failures = 5
        profile = await data.get_user_profile()
        assert profile.uid == "hunter-1"
