"""Tests for scan session lifecycle and configuration."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bac_py.app.client import BACnetClient
from bac_py.network.address import GLOBAL_BROADCAST

from bacnet_scan.config import ScanConfig, ScanOptions
from bacnet_scan.errors import EndpointError, ScanError
from bacnet_scan.session import open_session


def _fake_app(monkeypatch, start_error: Exception | None = None) -> MagicMock:
    app = MagicMock()
    app.start = AsyncMock(side_effect=start_error)
    app.stop = AsyncMock()
    factory = MagicMock(return_value=app)
    monkeypatch.setattr("bacnet_scan.session.BACnetApplication", factory)
    return app


class TestOpenSession:
    async def test_yields_client_and_stops(self, monkeypatch):
        app = _fake_app(monkeypatch)
        config = ScanConfig(port=47809)
        async with open_session(config) as session:
            assert isinstance(session.client, BACnetClient)
            assert session.config is config
            app.start.assert_awaited_once()
            app.stop.assert_not_awaited()
        app.stop.assert_awaited_once()

    async def test_stops_on_error_inside_block(self, monkeypatch):
        app = _fake_app(monkeypatch)
        with pytest.raises(RuntimeError):
            async with open_session():
                raise RuntimeError("scan failed")
        app.stop.assert_awaited_once()

    async def test_bind_failure_raises_endpoint_error(self, monkeypatch):
        app = _fake_app(monkeypatch, OSError("Address already in use"))
        with pytest.raises(EndpointError) as exc_info:
            async with open_session(ScanConfig(interface="10.0.0.2", port=47808)):
                pytest.fail("session must not open")
        assert isinstance(exc_info.value, ScanError)
        assert exc_info.value.port == 47808
        assert "10.0.0.2:47808" in str(exc_info.value)
        app.stop.assert_awaited_once()


class TestScanConfig:
    def test_defaults(self):
        config = ScanConfig()
        assert config.local_instance == 1337
        assert config.port == 47808
        assert config.apdu_timeout == 20000
        assert config.settle_time == 0.7
        assert config.chunk_size == 1500

    def test_device_config(self):
        config = ScanConfig(local_instance=42, port=47809, apdu_timeout=5000)
        device_config = config.device_config()
        assert device_config.instance_number == 42
        assert device_config.port == 47809
        assert device_config.apdu_timeout == 5000

    def test_global_broadcast_by_default(self):
        assert ScanConfig().broadcast_destination() == GLOBAL_BROADCAST

    def test_dest_port_only_for_directed_broadcast(self):
        config = ScanConfig(dest_port=47809)
        assert config.broadcast_destination() == GLOBAL_BROADCAST
        assert config.broadcast_destination(port=47810) == GLOBAL_BROADCAST

    def test_directed_broadcast_port(self):
        config = ScanConfig(broadcast_address="192.168.1.255", dest_port=47809)
        assert config.broadcast_destination().mac_address[4:] == (47809).to_bytes(2, "big")
        assert config.broadcast_destination(47810).mac_address[4:] == (47810).to_bytes(2, "big")

    def test_directed_broadcast(self):
        destination = ScanConfig(broadcast_address="192.168.1.255").broadcast_destination()
        assert destination != GLOBAL_BROADCAST
        assert destination.mac_address[:4] == bytes([192, 168, 1, 255])


class TestScanOptions:
    def test_backup_disabled_without_password(self):
        assert not ScanOptions().include_backup
        assert ScanOptions(backup_password="").include_backup
