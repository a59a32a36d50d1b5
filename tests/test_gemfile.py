import os

import pytest

from bundleconverge.gemfile import find_gemfile
from bundleconverge.util import ManifestPathError


def test_walks_up_to_gemfile(tmp_path):
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)
    gemfile = tmp_path / "a" / "Gemfile"
    gemfile.write_text("source 'https://rubygems.org'\n")

    assert find_gemfile(str(nested)) == str(gemfile)


def test_nearest_gemfile_wins(tmp_path):
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    (tmp_path / "a" / "Gemfile").write_text("")
    (nested / "Gemfile").write_text("")

    assert find_gemfile(str(nested)) == str(nested / "Gemfile")


def test_file_returned_unchanged(tmp_path):
    lockfile = tmp_path / "x" / "Gemfile.lock"
    lockfile.parent.mkdir()
    lockfile.write_text("")
    # a Gemfile next to it doesn't matter
    (tmp_path / "x" / "Gemfile").write_text("")

    assert find_gemfile(str(lockfile)) == str(lockfile)


def test_relative_path(tmp_path, monkeypatch):
    (tmp_path / "Gemfile").write_text("")
    (tmp_path / "app").mkdir()
    monkeypatch.chdir(tmp_path)

    assert find_gemfile("app") == os.path.join(str(tmp_path), "Gemfile")


def test_directory_named_gemfile_is_skipped(tmp_path):
    nested = tmp_path / "a"
    (nested / "Gemfile").mkdir(parents=True)
    (tmp_path / "Gemfile").write_text("")

    assert find_gemfile(str(nested)) == str(tmp_path / "Gemfile")


def test_no_gemfile(tmp_path, monkeypatch):
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    real_isfile = os.path.isfile

    # ignore any Gemfile that happens to exist above the temporary directory
    def isfile(path):
        if not str(path).startswith(str(tmp_path)):
            return False
        return real_isfile(path)

    monkeypatch.setattr(os.path, "isfile", isfile)
    assert find_gemfile(str(nested)) is None


def test_root_is_not_searched(monkeypatch):
    checked = []

    def isfile(path):
        checked.append(path)
        return False

    monkeypatch.setattr(os.path, "isfile", isfile)
    monkeypatch.setattr(os.path, "exists", lambda path: True)
    assert find_gemfile("/srv/app") is None
    assert checked == ["/srv/app", "/srv/app/Gemfile", "/srv/Gemfile"]


def test_nonexistent_path_fails_fast(tmp_path):
    (tmp_path / "Gemfile").write_text("")
    missing = tmp_path / "does" / "not" / "exist"

    with pytest.raises(ManifestPathError, match="does not exist"):
        find_gemfile(str(missing))
