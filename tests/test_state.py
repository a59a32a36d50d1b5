import io
import os

import pytest

from bundleconverge.state import (
    DesiredState,
    ResolveContext,
    RubyRuntime,
    load_desired_state,
    resolve_defaults,
)
from bundleconverge.util import ConfigurationError, ManifestPathError


def no_gem(name):
    return None


class TestResolveDefaults:
    def test_gem_binary_from_path_lookup(self, tmp_path):
        context = ResolveContext(which=lambda name: f"/usr/bin/{name}")
        state = resolve_defaults(context, path=str(tmp_path))
        assert state.gem_binary == "/usr/bin/gem"
        assert state.path == str(tmp_path)
        assert state.bundler_version is None
        assert not state.deployment
        assert state.without == ()

    def test_gem_binary_from_parent_ruby(self, tmp_path):
        context = ResolveContext(
            parent_ruby=RubyRuntime("/opt/ruby/bin/gem"), which=no_gem
        )
        state = resolve_defaults(context, path=str(tmp_path))
        assert state.gem_binary == "/opt/ruby/bin/gem"

    def test_explicit_gem_binary_wins(self, tmp_path):
        context = ResolveContext(parent_ruby=RubyRuntime("/opt/ruby/bin/gem"))
        state = resolve_defaults(context, path=str(tmp_path), gem_binary="/usr/bin/gem2")
        assert state.gem_binary == "/usr/bin/gem2"

    def test_no_gem_binary(self, tmp_path):
        with pytest.raises(ConfigurationError, match="gem_binary"):
            resolve_defaults(ResolveContext(which=no_gem), path=str(tmp_path))

    def test_without_string(self, tmp_path):
        state = resolve_defaults(
            ResolveContext(), path=str(tmp_path), gem_binary="gem", without="test"
        )
        assert state.without == ("test",)

    def test_without_list_keeps_order(self, tmp_path):
        state = resolve_defaults(
            ResolveContext(),
            path=str(tmp_path),
            gem_binary="gem",
            without=["test", "development"],
        )
        assert state.without == ("test", "development")

    def test_missing_path(self, tmp_path):
        with pytest.raises(ManifestPathError):
            resolve_defaults(
                ResolveContext(), path=str(tmp_path / "nope"), gem_binary="gem"
            )

    @pytest.mark.parametrize(
        "attributes",
        [
            dict(jobs=True),
            dict(deployment="yes"),
            dict(without=[1, 2]),
            dict(binstubs=3),
            dict(binstubs=""),
            dict(vendor=""),
            dict(unknown="x"),
            dict(timeout=0),
        ],
    )
    def test_invalid(self, tmp_path, attributes):
        with pytest.raises(ConfigurationError, match="invalid bundle_install attributes"):
            resolve_defaults(
                ResolveContext(), path=str(tmp_path), gem_binary="gem", **attributes
            )

    def test_path_required(self):
        with pytest.raises(ConfigurationError):
            resolve_defaults(ResolveContext(), gem_binary="gem")

    def test_state_is_immutable(self, tmp_path):
        state = resolve_defaults(ResolveContext(), path=str(tmp_path), gem_binary="gem")
        with pytest.raises(AttributeError):
            state.deployment = True  # type: ignore


class TestAbsoluteGemBinary:
    def test_absolute(self, tmp_path):
        state = DesiredState(path=str(tmp_path), gem_binary="/usr/bin/gem")
        assert state.absolute_gem_binary == "/usr/bin/gem"

    def test_relative_to_directory(self, tmp_path):
        state = DesiredState(path=str(tmp_path), gem_binary="bin/gem")
        assert state.absolute_gem_binary == os.path.join(str(tmp_path), "bin", "gem")

    def test_relative_to_gemfile(self, tmp_path):
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("")
        state = DesiredState(path=str(gemfile), gem_binary="bin/gem")
        assert state.absolute_gem_binary == os.path.join(str(tmp_path), "bin", "gem")


class TestLoadDesiredState:
    def test_load(self, tmp_path):
        doc = """
path: app
bundler_version: 2.4.22
deployment: true
vendor: true
without:
  - test
  - development
"""
        config = tmp_path / "bundle.yaml"
        attributes = load_desired_state(io.StringIO(doc), str(config))
        assert attributes == {
            "path": str(tmp_path / "app"),
            "bundler_version": "2.4.22",
            "deployment": True,
            "vendor": True,
            "without": ["test", "development"],
        }

    def test_empty(self):
        assert load_desired_state("") == {}

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError):
            load_desired_state("- a\n- b\n")
