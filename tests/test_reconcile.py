"""Tests for the reconciliation run."""

import pytest

from aptdecl.errors import DependencyLookupError, GroupLookupError, InstallCommandError
from aptdecl.reconcile import build_retained_set, reconcile
from aptdecl.specs import PackageSpec, parse_package_specs
from aptdecl.state import ChangeLog


def test_package_and_group_example(fake_backend, capsys):
    backend = fake_backend(
        snapshots=[{'git': '1.0'}, {'git': '1.0', 'make': '4.3'}],
        deps={'git': ['libc6'], 'make': [], 'gcc': []},
        groups={'build-essential': ['make', 'gcc']},
    )
    changes = ChangeLog()

    result = reconcile(parse_package_specs(['git', {'group': 'build-essential'}]), backend, changes)

    assert changes.added == {'make': '4.3'}
    assert changes.updated == {}
    assert changes.removed == {}
    assert backend.called('run_install') == [('run_install', ['build-essential', 'git'])]
    assert result.installed_after == {'git': '1.0', 'make': '4.3'}
    assert result.retained == {'git', 'libc6', 'make', 'gcc'}
    assert result.to_remove == []
    assert 'PACKAGE-INSTALLED: make@4.3' in capsys.readouterr().out


def test_offline_is_a_no_op(fake_backend, capsys):
    backend = fake_backend(online=False)
    changes = ChangeLog(added={'old': '1'})

    result = reconcile(parse_package_specs(['git']), backend, changes)

    assert result is None
    assert backend.calls == [('is_online',)]
    assert changes.added == {'old': '1'}
    assert 'network offline' in capsys.readouterr().out


def test_external_lookup_failure_is_not_fatal(fake_backend, capsys):
    backend = fake_backend(snapshots=[{'libfoo': '2'}])
    changes = ChangeLog()

    result = reconcile([PackageSpec('external', 'libfoo')], backend, changes)

    assert result is not None
    assert 'libfoo' in result.retained
    assert result.to_remove == []
    out = capsys.readouterr().out
    assert 'PACKAGE-LOOKUP-DEPS: WARNING: error looking up deps for EXTERNAL(libfoo); ignoring' in out


def test_externals_are_not_installed(fake_backend):
    backend = fake_backend(deps={'vim': [], 'libfoo': ['libbar']})

    reconcile(parse_package_specs(['vim', {'external': 'libfoo'}]), backend, ChangeLog())

    assert backend.called('run_install') == [('run_install', ['vim'])]


def test_externals_only_logs_no_install_command(fake_backend, capsys):
    backend = fake_backend(snapshots=[{'code': '1.9'}], deps={'code': []})

    result = reconcile([PackageSpec('external', 'code')], backend, ChangeLog())

    assert result.retained == {'code'}
    assert backend.called('run_install') == []
    assert 'PACMAN-INSTALL-COMMAND' not in capsys.readouterr().out


def test_package_lookup_failure_aborts_before_diff(fake_backend):
    backend = fake_backend(snapshots=[{}, {'mystery': '1'}])
    changes = ChangeLog()

    with pytest.raises(DependencyLookupError, match='possibly this is a group'):
        reconcile([PackageSpec('package', 'mystery')], backend, changes)

    assert changes.empty
    assert len(backend.called('list_installed')) == 1


def test_group_lookup_failure_aborts(fake_backend):
    backend = fake_backend()
    changes = ChangeLog()

    with pytest.raises(GroupLookupError):
        reconcile([PackageSpec('group', 'nope')], backend, changes)

    assert changes.empty
    assert len(backend.called('list_installed')) == 1


def test_install_failure_aborts(fake_backend):
    backend = fake_backend(install_fails=True, deps={'git': []})
    changes = ChangeLog()

    with pytest.raises(InstallCommandError):
        reconcile([PackageSpec('package', 'git')], backend, changes)

    assert changes.empty
    assert backend.called('resolve_dependencies') == []


def test_removal_is_computed_but_never_run(fake_backend, capsys):
    installed = {'git': '1', 'nano': '5', 'ed': '1.0'}
    backend = fake_backend(snapshots=[installed], deps={'git': []})
    changes = ChangeLog()

    result = reconcile([PackageSpec('package', 'git')], backend, changes)

    assert result.to_remove == ['ed', 'nano']
    assert result.remove_command == ['apt-get', 'remove', '-y', 'ed', 'nano']
    assert result.installed_after == installed
    assert changes.removed == {}
    assert 'PACMAN-REMOVE-COMMAND: apt-get remove -y ed nano' in capsys.readouterr().out


def test_no_remove_command_when_everything_retained(fake_backend, capsys):
    backend = fake_backend(snapshots=[{'git': '1'}], deps={'git': []})

    result = reconcile([PackageSpec('package', 'git')], backend, ChangeLog())

    assert result.remove_command is None
    assert 'PACMAN-REMOVE-COMMAND' not in capsys.readouterr().out


def test_upgrades_and_concurrent_removals_are_recorded(fake_backend, capsys):
    backend = fake_backend(
        snapshots=[{'git': '1.0', 'gone': '3'}, {'git': '1.0', 'gone': '3'}, {'git': '2.0'}],
        deps={'git': []},
    )
    changes = ChangeLog()

    reconcile([PackageSpec('package', 'git')], backend, changes)

    assert changes.updated == {'git': {'from': '1.0', 'to': '2.0'}}
    assert changes.removed == {'gone': '3'}
    out = capsys.readouterr().out
    assert 'PACKAGE-UPGRADED: 1.0 -> 2.0' in out
    assert 'PACKAGE-REMOVED: gone@3' in out


def test_changes_accumulate_across_runs(fake_backend):
    changes = ChangeLog(added={'earlier': '1'})
    backend = fake_backend(snapshots=[{}, {'git': '1'}], deps={'git': []})

    reconcile([PackageSpec('package', 'git')], backend, changes)

    assert changes.added == {'earlier': '1', 'git': '1'}


class TestRetainedSet:
    def test_expansion_is_single_pass(self, fake_backend):
        backend = fake_backend(deps={'a': ['b'], 'b': ['c']})

        retained = build_retained_set([], ['a'], [], backend)

        assert retained == {'a', 'b'}
        assert backend.called('resolve_dependencies') == [('resolve_dependencies', 'a')]

    def test_group_members_are_expanded(self, fake_backend):
        backend = fake_backend(groups={'desktop': ['xorg']}, deps={'xorg': ['libx11']})

        retained = build_retained_set(['desktop'], [], [], backend)

        assert retained == {'xorg', 'libx11'}

    def test_external_dependencies_are_retained(self, fake_backend):
        backend = fake_backend(deps={'libfoo': ['libbar']})

        retained = build_retained_set([], [], ['libfoo'], backend)

        assert retained == {'libfoo', 'libbar'}

    def test_external_deps_are_not_expanded_again(self, fake_backend):
        backend = fake_backend(deps={'vim': [], 'libfoo': ['libbar'], 'libbar': ['libbaz']})

        retained = build_retained_set([], ['vim'], ['libfoo'], backend)

        assert 'libbaz' not in retained
