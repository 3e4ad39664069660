"""Expansión de rutas."""

import pytest

from puesto.core.errors import InvalidConfigError
from puesto.declarative.paths import expand_locations, expand_path


def test_expands_locations_recursively():
    locations = {"dotfiles": "${locations.code}/dotfiles", "code": "/work"}
    assert expand_locations("${locations.dotfiles}/zsh", locations) == "/work/dotfiles/zsh"


def test_expands_env_and_home(monkeypatch):
    monkeypatch.setenv("HOME", "/home/ana")
    monkeypatch.setenv("DOTS", "/srv/dots")
    assert expand_path("$DOTS/a", {}) == "/srv/dots/a"
    assert expand_path("~/.arc", {}) == "/home/ana/.arc"
    assert expand_path("${locations.base}/x", {"base": "~/cfg"}) == "/home/ana/cfg/x"


def test_undefined_location_is_config_error():
    with pytest.raises(InvalidConfigError) as exc:
        expand_path("${locations.nope}/a", {}, "symlinks[0]")
    assert exc.value.where == "symlinks[0]"


def test_cycles_are_bounded():
    with pytest.raises(InvalidConfigError):
        expand_locations("${locations.a}", {"a": "${locations.b}", "b": "${locations.a}"})
