"""Unit tests for the plugin registry."""

from unittest.mock import MagicMock, patch

import pytest

from plugins import registry as registry_module
from plugins.clients.base import RemoteClient
from plugins.clients.civo import CivoClient
from plugins.reconcilers.base import ReconcilerPlugin
from plugins.reconcilers.snapshot import SnapshotReconciler
from plugins.registry import (
    PluginRegistry,
    get_registry,
    register_builtin_plugins,
    reset_registry,
)


class FakeClient(RemoteClient):
    """Client plugin recording its configuration."""

    def __init__(self):
        self.config = None

    @property
    def name(self):
        return "fake"

    @property
    def version(self):
        return "0.1.0"

    @classmethod
    def load_config_from_env(cls):
        return {"token": "from-env"}

    async def initialize(self, config):
        self.config = config

    async def create_snapshot(self, name, request):
        raise NotImplementedError

    async def find_snapshot(self, snapshot_id):
        raise NotImplementedError

    async def delete_snapshot(self, snapshot_id):
        raise NotImplementedError


class FakeReconciler(ReconcilerPlugin):
    name = "fake"
    resource_types = ["fake_snapshot"]
    client_plugin = "fake"

    def __init__(self, client, **kwargs):
        self.client = client
        self.kwargs = kwargs

    async def create(self, data, timeout=None):
        return {}

    async def read(self, data):
        return {}

    async def delete(self, data):
        return None


class TestRegistration:
    """Tests for plugin registration."""

    def test_register_client_plugin(self):
        registry = PluginRegistry()
        registry.register_client_plugin(FakeClient)

        assert registry.list_client_plugins() == ["fake"]
        assert registry.has_client_plugin("fake")
        assert registry.get_client_plugin_info("fake") == {
            "name": "fake",
            "version": "0.1.0",
        }
        assert registry.get_client_plugin_config("fake") == {"token": "from-env"}

    def test_client_config_is_copied(self):
        registry = PluginRegistry()
        registry.register_client_plugin(FakeClient)

        registry.get_client_plugin_config("fake")["token"] = "changed"

        assert registry.get_client_plugin_config("fake") == {"token": "from-env"}

    def test_register_reconciler_plugin(self):
        registry = PluginRegistry()
        registry.register_reconciler_plugin(FakeReconciler)

        assert registry.list_reconciler_plugins() == ["fake"]
        assert registry.has_reconciler_for_resource_type("fake_snapshot")
        assert not registry.has_reconciler_for_resource_type("other")
        assert registry.get_reconciler_plugin_info("fake") == {
            "name": "fake",
            "resource_types": ["fake_snapshot"],
            "client_plugin": "fake",
        }

    def test_resource_type_conflict(self):
        class Conflicting(FakeReconciler):
            name = "conflicting"

        registry = PluginRegistry()
        registry.register_reconciler_plugin(FakeReconciler)

        with pytest.raises(ValueError, match="already claimed"):
            registry.register_reconciler_plugin(Conflicting)

    def test_reconciler_without_client_plugin(self):
        class NoClient(FakeReconciler):
            client_plugin = None

        with pytest.raises(ValueError, match="client_plugin"):
            PluginRegistry().register_reconciler_plugin(NoClient)

    def test_reconciler_with_property_metadata(self):
        class PropertyNamed(FakeReconciler):
            @property
            def name(self):
                return "property"

        with pytest.raises(ValueError, match="class attributes"):
            PluginRegistry().register_reconciler_plugin(PropertyNamed)


@pytest.mark.asyncio
class TestInstantiation:
    """Tests for client and reconciler instantiation."""

    async def test_unknown_client(self):
        with pytest.raises(ValueError, match="Unknown client plugin"):
            await PluginRegistry().get_client_plugin("missing")

    async def test_client_initialized_with_env_config(self):
        registry = PluginRegistry()
        registry.register_client_plugin(FakeClient)

        client = await registry.get_client_plugin("fake")

        assert client.config == {"token": "from-env"}
        assert await registry.get_client_plugin("fake") is client

    async def test_client_initialized_with_explicit_config(self):
        registry = PluginRegistry()
        registry.register_client_plugin(FakeClient)

        client = await registry.get_client_plugin("fake", {"token": "explicit"})

        assert client.config == {"token": "explicit"}

    async def test_reconciler_receives_client(self):
        registry = PluginRegistry()
        registry.register_client_plugin(FakeClient)
        registry.register_reconciler_plugin(FakeReconciler)

        reconciler = await registry.get_reconciler_for_resource_type(
            "fake_snapshot", poll_config="poll"
        )

        assert isinstance(reconciler.client, FakeClient)
        assert reconciler.kwargs == {"poll_config": "poll"}
        assert await registry.get_reconciler_plugin("fake") is reconciler

    async def test_unknown_resource_type(self):
        registry = PluginRegistry()
        assert await registry.get_reconciler_for_resource_type("nope") is None

    async def test_unknown_reconciler(self):
        with pytest.raises(ValueError, match="Unknown reconciler plugin"):
            await PluginRegistry().get_reconciler_plugin("missing")


class TestGlobalRegistry:
    """Tests for the registry singleton and built-in registration."""

    def setup_method(self):
        reset_registry()

    def teardown_method(self):
        reset_registry()

    def test_singleton(self):
        assert get_registry() is get_registry()

    def test_reset(self):
        first = get_registry()
        reset_registry()
        assert get_registry() is not first

    def test_register_builtin_plugins(self):
        with patch.object(registry_module, "entry_points", return_value=[]):
            register_builtin_plugins()

        registry = get_registry()
        assert registry.has_client_plugin("civo")
        assert registry.has_reconciler_for_resource_type("civo_snapshot")
        assert registry.get_reconciler_plugin_info("snapshot")["client_plugin"] == "civo"

    def test_entry_point_reconcilers_discovered(self):
        ep = MagicMock()
        ep.name = "fake"
        ep.load.return_value = FakeReconciler

        with patch.object(registry_module, "entry_points", return_value=[ep]):
            register_builtin_plugins()

        assert get_registry().has_reconciler_for_resource_type("fake_snapshot")

    def test_broken_entry_point_is_skipped(self):
        ep = MagicMock()
        ep.name = "broken"
        ep.load.side_effect = ImportError("no module")

        with patch.object(registry_module, "entry_points", return_value=[ep]):
            register_builtin_plugins()

        assert get_registry().list_reconciler_plugins() == ["snapshot"]

    def test_builtin_classes(self):
        with patch.object(registry_module, "entry_points", return_value=[]):
            register_builtin_plugins()

        registry = get_registry()
        assert registry._client_plugins["civo"] is CivoClient
        assert registry._reconciler_plugins["snapshot"] is SnapshotReconciler
