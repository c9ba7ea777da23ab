"""Tests for plugin discovery and registration."""

from __future__ import annotations

from typing import Any

import pytest

from rentalctl.plugins import hookimpl
from rentalctl.plugins.manager import ENTRY_POINT_GROUP, PluginManager


class AuditPlugin:
    def __init__(self) -> None:
        self.seen: list[str] = []

    @hookimpl
    def reservation_cancelled(self, reservation_id: str, reason: str | None) -> None:
        self.seen.append(f"{reservation_id}:{reason}")


class NotAPlugin:
    def helper(self) -> None:
        pass


class TestPluginManager:
    def test_register_and_dispatch(self) -> None:
        pm = PluginManager()
        plugin = AuditPlugin()
        pm.register_plugin(plugin)
        pm.hook.reservation_cancelled(
            reservation_id="rsv_000000000001",
            member_id="mbr_000000000001",
            equipment_id="eqp_000000000001",
            reason="weather",
        )
        assert plugin.seen == ["rsv_000000000001:weather"]
        assert "AuditPlugin" in pm.list_plugin_names()

    def test_explicit_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(AuditPlugin(), "audit")
        assert "audit" in pm.list_plugin_names()

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = AuditPlugin()
        pm.register_plugin(plugin)
        pm.unregister(plugin)
        assert "AuditPlugin" not in pm.list_plugin_names()

    def test_discover_with_no_entry_points(self) -> None:
        pm = PluginManager()
        assert not pm.is_loaded
        pm.discover_and_load()
        assert pm.is_loaded

    def test_entry_point_classes_are_instantiated(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pm = PluginManager()

        def fake_load(group: str, name: str | None = None) -> int:
            assert group == ENTRY_POINT_GROUP
            pm._pm.register(AuditPlugin, name="audit")
            pm._pm.register(NotAPlugin, name="plain")
            return 2

        monkeypatch.setattr(pm._pm, "load_setuptools_entrypoints", fake_load)
        pm.discover_and_load()
        audit = pm._pm.get_plugin("audit")
        assert isinstance(audit, AuditPlugin)
        assert pm._pm.get_plugin("plain") is NotAPlugin

    def test_broken_entry_point_class_is_skipped(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        class Broken:
            def __init__(self, required: Any) -> None:
                self.required = required

            @hookimpl
            def reservation_expired(self, reservation_id: str) -> None:
                pass

        pm = PluginManager()
        monkeypatch.setattr(
            pm._pm,
            "load_setuptools_entrypoints",
            lambda group, name=None: pm._pm.register(Broken, name="broken") and 1,
        )
        names = pm.discover_and_load()
        assert "broken" not in names
