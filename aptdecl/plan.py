from dataclasses import dataclass, field

from aptdecl.specs import PackageSpec


@dataclass
class PackageDiff:
    """Installed-set changes between two snapshots."""

    added: dict[str, str] = field(default_factory=dict)
    updated: dict[str, dict[str, str]] = field(default_factory=dict)
    removed: dict[str, str] = field(default_factory=dict)
    unchanged: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.added and not self.updated and not self.removed


def partition_specs(specs: list[PackageSpec]) -> tuple[list[str], list[str], list[str]]:
    """Split specs by kind.

    Returns (groups, packages, externals), each in declaration order.
    """
    groups = [s.name for s in specs if s.kind == 'group']
    packages = [s.name for s in specs if s.kind == 'package']
    externals = [s.name for s in specs if s.kind == 'external']
    return groups, packages, externals


def compute_removals(installed: dict[str, str], retained: set[str]) -> list[str]:
    """Installed packages not in the retained set, sorted."""
    return sorted(name for name in installed if name not in retained)


def diff_installed(before: dict[str, str], after: dict[str, str]) -> PackageDiff:
    """Classify every name of both snapshots exactly once."""
    diff = PackageDiff()

    for name, version in after.items():
        if name not in before:
            diff.added[name] = version
        elif before[name] != version:
            diff.updated[name] = {'from': before[name], 'to': version}
        else:
            diff.unchanged.append(name)

    for name, version in before.items():
        if name not in after:
            diff.removed[name] = version

    diff.unchanged.sort()
    return diff
