"""Tests for the startup/shutdown lifespan in api/main.py."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from api.main import lifespan


def test_shutdown_cancels_and_collects_purge_task() -> None:
    store = MagicMock()

    async def run():
        app = SimpleNamespace(state=SimpleNamespace())
        async with lifespan(app):
            task = app.state.purge_task
            assert not task.done()
        return task

    with patch("api.main.AccountStore", return_value=store), patch("api.main.build_mailer", return_value=MagicMock()):
        task = asyncio.run(run())

    assert task.cancelled()
    store.close.assert_called_once()
