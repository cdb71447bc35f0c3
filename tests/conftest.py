import asyncio
import os
import tempfile
from pathlib import Path

# keep the module-level engine and third-party clients away from real resources
_TMP_DIR = Path(tempfile.mkdtemp(prefix="tradelog-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'journal.db'}"
os.environ["OPENAI_API_KEY"] = ""
os.environ["DEEPSEEK_ENABLED"] = "false"
os.environ["MARKET_DATA_API_KEY"] = ""
os.environ["IMAGE_HOST_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from tradelog.main import app
from tradelog.models.db import get_session, init_models


@pytest.fixture
def client(tmp_path):
    # NullPool: no connection outlives the event loop that opened it
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'journal.db'}", poolclass=NullPool)
    asyncio.run(init_models(engine))
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def _session_override():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        asyncio.run(engine.dispose())


@pytest.fixture
def log_trade(client):
    def _log(**fields):
        body = {"symbol": "AAPL", "entryPrice": 100, "quantity": 10}
        body.update(fields)
        resp = client.post("/trades", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _log
