from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from core.cache.sqlite_store import SqliteCacheStore
from core.shared_data import SharedData
from models.config_models import Config

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.asyncio
async def test_shared_data_wires_services_over_sqlite(tmp_path: Path) -> None:
    config = Config()
    config.CACHE.DB_PATH = str(tmp_path / "cache" / "relay.db")
    shared_data = SharedData(config)

    await shared_data.component_load()
    try:
        assert sorted(shared_data.trans_manager.provider_names) == ["anthropic", "gemini", "grok", "openai"]
        assert isinstance(shared_data.cache_manager.cold, SqliteCacheStore)
        assert shared_data.orchestrator.cache is shared_data.cache_manager
        assert shared_data.orchestrator.trans_manager is shared_data.trans_manager

        await shared_data.cache_manager.set("en", "ja", "Hello", "こんにちは")
        stats: Any = await shared_data.message_handler.handle_message({"action": "getCacheStats"})
        assert stats == {"memoryCount": 1, "dbCount": 1, "totalCount": 1}
    finally:
        await shared_data.component_teardown()

    assert (tmp_path / "cache" / "relay.db").is_file()
    assert shared_data.trans_manager.provider_names == []
