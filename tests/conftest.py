"""Pytest fixtures for aptdecl tests."""

from pathlib import Path
from typing import Generator

import pytest

from aptdecl import constants
from aptdecl.errors import DependencyLookupError, GroupLookupError, InstallCommandError


class FakeBackend:
    """In-memory PackageBackend.

    `snapshots` are returned by successive list_installed calls; the last one
    repeats. Names missing from `deps` fail their lookup.
    """

    def __init__(self, snapshots=None, deps=None, groups=None, online=True, install_fails=False):
        self.snapshots = list(snapshots or [{}])
        self.deps = deps or {}
        self.groups = groups or {}
        self.online = online
        self.install_fails = install_fails
        self.calls = []

    def is_online(self):
        self.calls.append(('is_online',))
        return self.online

    def list_installed(self):
        self.calls.append(('list_installed',))
        if len(self.snapshots) > 1:
            return dict(self.snapshots.pop(0))
        return dict(self.snapshots[0])

    def dependencies_of_group(self, group):
        self.calls.append(('dependencies_of_group', group))
        if group not in self.groups:
            raise GroupLookupError(group)
        return list(self.groups[group])

    def resolve_dependencies(self, name):
        self.calls.append(('resolve_dependencies', name))
        if name not in self.deps:
            raise DependencyLookupError(name)
        return list(self.deps[name])

    def build_install_command(self, names):
        return ['apt-get', 'install', '-y'] + list(names)

    def build_remove_command(self, names):
        return ['apt-get', 'remove', '-y'] + list(names)

    def run_install(self, names):
        self.calls.append(('run_install', list(names)))
        if self.install_fails:
            raise InstallCommandError(self.build_install_command(names), 100)

    def called(self, method):
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def fake_backend():
    return FakeBackend


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    """Point every aptdecl path at a temporary directory."""
    root = tmp_path / 'aptdecl'
    monkeypatch.setattr(constants, 'CONFIG_DIR', root)
    monkeypatch.setattr(constants, 'HOSTS_DIR', root / 'hosts')
    monkeypatch.setattr(constants, 'MODULES_DIR', root / 'modules')
    monkeypatch.setattr(constants, 'CONFIG_FILE', root / 'config.yaml')
    monkeypatch.setattr(constants, 'STATE_FILE', root / 'state.yaml')
    monkeypatch.setattr(constants, 'CHANGES_FILE', root / 'changes.yaml')
    yield root


@pytest.fixture
def host_config(config_dir: Path):
    """Write a host 'box' with one 'base' module and return a module writer."""
    from aptdecl.config import save_yaml

    save_yaml(config_dir / 'config.yaml', {'host': 'box'})
    save_yaml(config_dir / 'hosts' / 'box.yaml', {'modules': ['base']})

    def write_module(name: str, packages: list, activate: bool = False):
        save_yaml(config_dir / 'modules' / name / 'module.yaml', {'packages': packages})
        if activate:
            host_file = config_dir / 'hosts' / 'box.yaml'
            save_yaml(host_file, {'modules': ['base', name]})

    write_module('base', [])
    return write_module
