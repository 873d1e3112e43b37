"""
Unit tests for the builder config loader.
"""

from pathlib import Path

import pytest

from otelbuilder.config import ComponentKind
from otelbuilder.config.config_loader import (
    BuilderConfigLoader,
    ConfigLoadError,
    env_var_name,
    load_config,
)


class TestBuilderConfigLoader:
    """Test suite for BuilderConfigLoader."""

    @pytest.fixture
    def tmp_config_path(self, tmp_path):
        """Fixture to provide a temporary config file path."""
        return tmp_path / "builder-config.yaml"

    @pytest.fixture
    def full_config(self, tmp_config_path, tmp_path):
        """Create a config with every section."""
        local = tmp_path / "local-exporter"
        local.mkdir()
        content = f"""
dist:
  name: otelcol-dev
  description: Dev distribution
  version: 2.0.0
  otelcol_version: 0.36.0
  module: example.com/dev
  output_path: {tmp_path / "out"}
  include_core: false
extensions:
  - gomod: "example.com/ext v0.1.0"
receivers:
  - gomod: "example.com/contrib v0.36.0"
    import: example.com/contrib/receiver/fooreceiver
    name: foo
exporters:
  - gomod: "example.com/local-exporter v0.0.1"
    path: {local}
dependencies:
  - import: example.com/lib
    version: v1.1.0
replaces:
  - "example.com/old => example.com/new v1.0.0"
"""
        tmp_config_path.write_text(content)
        return tmp_config_path

    def test_load_full_config(self, full_config, tmp_path):
        dist = BuilderConfigLoader(full_config, environ={}).load()

        assert dist.name == "otelcol-dev"
        assert dist.long_name == "Dev distribution"
        assert dist.version == "2.0.0"
        assert dist.otelcol_version == "0.36.0"
        assert dist.module == "example.com/dev"
        assert dist.output_path == tmp_path / "out"
        assert dist.include_core is False
        assert dist.replaces == ("example.com/old => example.com/new v1.0.0",)

        kinds = [entry.kind for entry in dist.components]
        assert kinds == [
            ComponentKind.EXTENSION,
            ComponentKind.RECEIVER,
            ComponentKind.EXPORTER,
            None,
        ]
        receiver = dist.components[1]
        assert receiver.import_path == "example.com/contrib/receiver/fooreceiver"
        assert receiver.module == "example.com/contrib"
        assert receiver.name == "foo"
        assert dist.components[2].replacement_path == str(tmp_path / "local-exporter")
        assert dist.components[3].version == "v1.1.0"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="not found"):
            BuilderConfigLoader(tmp_path / "missing.yaml", environ={})

    def test_invalid_yaml(self, tmp_config_path):
        tmp_config_path.write_text("dist: [unclosed\n")
        with pytest.raises(ConfigLoadError, match="Failed to parse"):
            BuilderConfigLoader(tmp_config_path, environ={})

    def test_top_level_must_be_mapping(self, tmp_config_path):
        tmp_config_path.write_text("- a\n- b\n")
        with pytest.raises(ConfigLoadError, match="mapping"):
            BuilderConfigLoader(tmp_config_path, environ={})

    def test_empty_file_uses_defaults(self, tmp_config_path):
        tmp_config_path.write_text("")
        dist = BuilderConfigLoader(tmp_config_path, environ={}).load()
        assert dist.name == "otelcol-custom"
        assert dist.components == ()

    def test_component_needs_gomod_or_import(self, tmp_config_path):
        tmp_config_path.write_text("receivers:\n  - name: orphan\n")
        loader = BuilderConfigLoader(tmp_config_path, environ={})
        with pytest.raises(ConfigLoadError, match=r"receivers\[0\]"):
            loader.load()

    def test_malformed_gomod(self, tmp_config_path):
        tmp_config_path.write_text('exporters:\n  - gomod: "example.com/x"\n')
        loader = BuilderConfigLoader(tmp_config_path, environ={})
        with pytest.raises(ConfigLoadError, match=r"exporters\[0\]"):
            loader.load()

    def test_section_must_be_list(self, tmp_config_path):
        tmp_config_path.write_text("processors: example.com/p\n")
        loader = BuilderConfigLoader(tmp_config_path, environ={})
        with pytest.raises(ConfigLoadError, match="'processors' must be a list"):
            loader.load()

    def test_environment_overrides_file(self, full_config):
        environ = {
            env_var_name("dist.name"): "otelcol-env",
            env_var_name("skip_compilation"): "true",
        }
        dist = BuilderConfigLoader(full_config, environ=environ).load()
        assert dist.name == "otelcol-env"
        assert dist.skip_compilation is True

    def test_overrides_win_over_environment(self, full_config):
        environ = {env_var_name("dist.name"): "otelcol-env"}
        dist = BuilderConfigLoader(full_config, environ=environ).load(
            overrides={"dist.name": "otelcol-flag", "dist.module": None}
        )
        assert dist.name == "otelcol-flag"
        # None overrides are ignored
        assert dist.module == "example.com/dev"

    def test_invalid_boolean(self, full_config):
        environ = {env_var_name("dist.include_core"): "maybe"}
        loader = BuilderConfigLoader(full_config, environ=environ)
        with pytest.raises(ConfigLoadError, match="must be a boolean"):
            loader.load()

    def test_env_var_name(self):
        assert env_var_name("dist.output_path") == "OTELCOL_BUILDER_DIST_OUTPUT_PATH"

    def test_default_file_is_optional(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        dist = load_config(environ={"OTELCOL_BUILDER_DIST_MODULE": "example.com/env"})
        assert dist.module == "example.com/env"

    def test_default_file_is_read_when_present(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        (tmp_path / ".otelcol-builder.yaml").write_text("dist:\n  name: from-home\n")
        loader = BuilderConfigLoader(environ={})
        assert loader.config_path == tmp_path / ".otelcol-builder.yaml"
        assert loader.load().name == "from-home"
