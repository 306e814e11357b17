"""Tests for application startup and shutdown."""

import pytest
from fastapi import FastAPI

from insura_ops.core.exceptions import ConfigurationError
from insura_ops.database import BackendClients
from insura_ops.main import lifespan


@pytest.fixture
def bare_app():
    return FastAPI()


class TestLifespan:
    @pytest.mark.asyncio
    async def test_missing_configuration_aborts_startup(self, bare_app, unconfigured_settings, monkeypatch):
        monkeypatch.setattr("insura_ops.main.settings", unconfigured_settings.model_copy(update={"debug": False}))

        with pytest.raises(ConfigurationError):
            async with lifespan(bare_app):
                pass

        assert bare_app.state.backend_clients is None

    @pytest.mark.asyncio
    async def test_debug_mode_starts_degraded(self, bare_app, unconfigured_settings, monkeypatch):
        monkeypatch.setattr("insura_ops.main.settings", unconfigured_settings.model_copy(update={"debug": True}))

        async with lifespan(bare_app):
            assert bare_app.state.backend_clients is None

    @pytest.mark.asyncio
    async def test_configured_startup_builds_clients(self, bare_app, test_settings, monkeypatch):
        monkeypatch.setattr("insura_ops.main.settings", test_settings)

        async with lifespan(bare_app):
            clients = bare_app.state.backend_clients
            assert isinstance(clients, BackendClients)
            assert clients.has_service_key()

        assert bare_app.state.backend_clients is None
