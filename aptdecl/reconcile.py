"""Reconcile the installed package set against declared specs.

A run installs every declared group and package, works out which installed
packages must be kept, reports (but never executes) the removal of the rest,
and records what changed between the before and after snapshots.
"""

from dataclasses import dataclass, field
from typing import Protocol

from aptdecl.errors import DependencyLookupError
from aptdecl.output import audit, warning
from aptdecl.plan import PackageDiff, compute_removals, diff_installed, partition_specs
from aptdecl.specs import PackageSpec
from aptdecl.state import ChangeLog

OFFLINE_WARNING = 'WARNING: network offline / apt not working. Skipping packages.'


class PackageBackend(Protocol):
    def is_online(self) -> bool: ...

    def list_installed(self) -> dict[str, str]: ...

    def dependencies_of_group(self, group: str) -> list[str]: ...

    def resolve_dependencies(self, name: str) -> list[str]: ...

    def build_install_command(self, names: list[str]) -> list[str]: ...

    def build_remove_command(self, names: list[str]) -> list[str]: ...

    def run_install(self, names: list[str]) -> None: ...


@dataclass
class ReconcileResult:
    installed_before: dict[str, str]
    installed_after: dict[str, str]
    retained: set[str]
    to_remove: list[str]
    remove_command: list[str] | None = None
    diff: PackageDiff = field(default_factory=PackageDiff)


def build_retained_set(
    groups: list[str],
    packages: list[str],
    externals: list[str],
    backend: PackageBackend,
) -> set[str]:
    """Names that must survive pruning.

    Dependencies are expanded a single level from the declared groups and
    packages, not iterated to a fixed point. Lookup failures are fatal except
    for externals.
    """
    retained = set()

    for group in groups:
        retained.update(backend.dependencies_of_group(group))

    retained.update(packages)

    # Snapshot: names added while expanding are not expanded themselves.
    for name in sorted(retained):
        retained.update(backend.resolve_dependencies(name))

    for name in externals:
        retained.add(name)
        try:
            retained.update(backend.resolve_dependencies(name))
        except DependencyLookupError:
            audit(f'PACKAGE-LOOKUP-DEPS: WARNING: error looking up deps for EXTERNAL({name}); ignoring')

    return retained


def record_changes(diff: PackageDiff, changes: ChangeLog):
    for name, version in diff.added.items():
        audit(f'PACKAGE-INSTALLED: {name}@{version}')
    for versions in diff.updated.values():
        audit(f'PACKAGE-UPGRADED: {versions["from"]} -> {versions["to"]}')
    for name, version in diff.removed.items():
        audit(f'PACKAGE-REMOVED: {name}@{version}')
    changes.record(diff)


def reconcile(
    specs: list[PackageSpec],
    backend: PackageBackend,
    changes: ChangeLog,
) -> ReconcileResult | None:
    """Install declared specs and record the resulting package changes.

    Returns None without touching the system when the package index cannot
    be refreshed. Persisting the result is left to the caller.
    """
    if not backend.is_online():
        warning(OFFLINE_WARNING)
        return None

    groups, packages, externals = partition_specs(specs)

    installed_before = backend.list_installed()

    # Externals are never installed here.
    to_install = groups + packages
    if to_install:
        audit(f'PACMAN-INSTALL-COMMAND: {" ".join(backend.build_install_command(to_install))}')
        backend.run_install(to_install)

    retained = build_retained_set(groups, packages, externals, backend)

    to_remove = compute_removals(backend.list_installed(), retained)
    remove_command = None
    if to_remove:
        remove_command = backend.build_remove_command(to_remove)
        audit(f'PACMAN-REMOVE-COMMAND: {" ".join(remove_command)}')

    installed_after = backend.list_installed()

    diff = diff_installed(installed_before, installed_after)
    record_changes(diff, changes)

    return ReconcileResult(
        installed_before=installed_before,
        installed_after=installed_after,
        retained=retained,
        to_remove=to_remove,
        remove_command=remove_command,
        diff=diff,
    )
