"""
Tests for PluginRegistry.
"""

from types import SimpleNamespace

import pytest

from personium_auth_sample.exceptions import PluginLoadError, ResourceLoadError
from personium_auth_sample.host import registry as registry_module
from personium_auth_sample.host.registry import PluginRegistry
from personium_auth_sample.plugin import AuthenticatedIdentity
from personium_auth_sample.sample import SampleAuthPlugin


class EchoPlugin:
    """Plugin satisfying the contract without inheriting anything."""

    def __init__(self, grant_type="urn:x-test:echo", category="auth"):
        self._grant_type = grant_type
        self._category = category

    def category(self):
        return self._category

    def grant_type(self):
        return self._grant_type

    def account_type(self):
        return "test:echo"

    def authenticate(self, body):
        return AuthenticatedIdentity(account_name=body["user"][0], account_type="test:echo")


class BrokenCatalogPlugin:
    """Plugin whose resources cannot be loaded."""

    def __init__(self):
        raise ResourceLoadError("broken.properties", "not found")


class FailingPlugin:
    def __init__(self):
        raise RuntimeError("boom")


class TestRegister:
    """Test suite for manual registration."""

    def test_register_structural_plugin(self):
        registry = PluginRegistry()

        plugin = registry.register(EchoPlugin())

        assert registry.get("urn:x-test:echo") is plugin
        assert "urn:x-test:echo" in registry
        assert len(registry) == 1
        assert list(registry) == [plugin]

    def test_register_sample_plugin(self):
        registry = PluginRegistry()
        registry.register(SampleAuthPlugin())

        assert registry.grant_types() == ["urn:x-personium:auth:sample"]

    def test_reject_non_plugin(self):
        with pytest.raises(TypeError):
            PluginRegistry().register(SimpleNamespace(grant_type=lambda: "x"))

    def test_reject_other_category(self):
        with pytest.raises(TypeError, match="unsupported plugin type"):
            PluginRegistry().register(EchoPlugin(category="box"))

    def test_reject_duplicate_grant_type(self):
        registry = PluginRegistry()
        registry.register(EchoPlugin())

        with pytest.raises(ValueError, match="already registered"):
            registry.register(EchoPlugin())

    def test_get_unknown(self):
        assert PluginRegistry().get("urn:unknown") is None


class TestLoad:
    """Test suite for loading plugins from import paths."""

    def test_load_sample(self):
        registry = PluginRegistry()

        plugin = registry.load("personium_auth_sample.sample:SampleAuthPlugin")

        assert isinstance(plugin, SampleAuthPlugin)
        assert "urn:x-personium:auth:sample" in registry

    def test_load_passes_plugin_options(self):
        registry = PluginRegistry(plugin_options={"locale": "ja"})

        plugin = registry.load("personium_auth_sample.sample:SampleAuthPlugin")

        assert plugin.catalog.format("error.required.param.missing", "x").startswith("必")

    @pytest.mark.parametrize("path", [
        "no_colon",
        "no_such_module_xyz:Plugin",
        "personium_auth_sample.sample:NoSuchClass",
        f"{__name__}:FailingPlugin",
        "personium_auth_sample.messages:MessageCatalog",
    ])
    def test_load_failures(self, path):
        with pytest.raises(PluginLoadError):
            PluginRegistry().load(path)

    def test_load_resource_failure_propagates(self):
        with pytest.raises(ResourceLoadError):
            PluginRegistry().load(f"{__name__}:BrokenCatalogPlugin")


class FakeEntryPoint:
    def __init__(self, name, target):
        self.name = name
        self.value = f"{__name__}:{target.__name__}"
        self._target = target

    def load(self):
        return self._target


class TestDiscover:
    """Test suite for entry point discovery."""

    def test_discover_skips_failures(self, monkeypatch):
        entries = [
            FakeEntryPoint("echo", EchoPlugin),
            FakeEntryPoint("broken", BrokenCatalogPlugin),
            FakeEntryPoint("failing", FailingPlugin),
        ]
        monkeypatch.setattr(registry_module, "entry_points", lambda group: entries)
        registry = PluginRegistry()

        loaded = registry.discover()

        assert [p.grant_type() for p in loaded] == ["urn:x-test:echo"]
        assert registry.grant_types() == ["urn:x-test:echo"]

    def test_discover_skips_stale_entry_point(self, monkeypatch, caplog):
        """Test an entry point naming a missing class does not stop discovery."""

        class StaleEntryPoint(FakeEntryPoint):
            def load(self):
                return getattr(registry_module, "NoSuchPlugin")

        entries = [
            StaleEntryPoint("stale", EchoPlugin),
            FakeEntryPoint("echo", EchoPlugin),
        ]
        monkeypatch.setattr(registry_module, "entry_points", lambda group: entries)
        registry = PluginRegistry()

        loaded = registry.discover()

        assert [p.grant_type() for p in loaded] == ["urn:x-test:echo"]
        assert "'stale'" in caplog.text

    def test_discover_skips_module_errors(self, monkeypatch):
        """Test any exception raised while loading an entry point is skipped."""

        class ExplodingEntryPoint(FakeEntryPoint):
            def load(self):
                raise RuntimeError("module body failed")

        monkeypatch.setattr(
            registry_module, "entry_points",
            lambda group: [ExplodingEntryPoint("exploding", EchoPlugin)],
        )

        assert PluginRegistry().discover() == []

    def test_discover_keeps_registered_grant_types(self, monkeypatch):
        monkeypatch.setattr(
            registry_module, "entry_points",
            lambda group: [FakeEntryPoint("echo", EchoPlugin)],
        )
        registry = PluginRegistry()
        existing = registry.register(EchoPlugin())

        assert registry.discover() == []
        assert registry.get("urn:x-test:echo") is existing

    def test_discover_installed_sample(self):
        """Test the sample plugin is registered as an entry point."""
        registry = PluginRegistry()

        registry.discover()

        assert "urn:x-personium:auth:sample" in registry
