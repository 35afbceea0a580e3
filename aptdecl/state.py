from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import yaml

from aptdecl import constants
from aptdecl.config import save_yaml
from aptdecl.plan import PackageDiff


def load_yaml(path: Path) -> dict:
    """Load a YAML mapping, empty if the file is missing."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


@dataclass
class SystemState:
    """Installed-package snapshot taken at the end of the last sync."""

    packages: dict[str, str] = field(default_factory=dict)
    last_sync: str | None = None

    @classmethod
    def load(cls, path: Path | None = None) -> 'SystemState':
        data = load_yaml(path or constants.STATE_FILE)
        return cls(
            packages={str(k): str(v) for k, v in (data.get('packages') or {}).items()},
            last_sync=data.get('last_sync'),
        )

    def update(self, installed: dict[str, str]):
        """Replace the snapshot with a fresh installed set."""
        self.packages = dict(installed)
        self.last_sync = datetime.now().isoformat(timespec='seconds')

    def save(self, path: Path | None = None):
        save_yaml(path or constants.STATE_FILE, {'packages': self.packages, 'last_sync': self.last_sync})


@dataclass
class ChangeLog:
    """Accumulated package changes, kept until explicitly cleared."""

    added: dict[str, str] = field(default_factory=dict)
    updated: dict[str, dict[str, str]] = field(default_factory=dict)
    removed: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> 'ChangeLog':
        data = load_yaml(path or constants.CHANGES_FILE)
        return cls(
            added=dict(data.get('added') or {}),
            updated=dict(data.get('updated') or {}),
            removed=dict(data.get('removed') or {}),
        )

    def record(self, diff: PackageDiff):
        self.added.update(diff.added)
        self.updated.update(diff.updated)
        self.removed.update(diff.removed)

    def clear(self):
        self.added.clear()
        self.updated.clear()
        self.removed.clear()

    @property
    def empty(self) -> bool:
        return not self.added and not self.updated and not self.removed

    def save(self, path: Path | None = None):
        save_yaml(
            path or constants.CHANGES_FILE,
            {'added': self.added, 'updated': self.updated, 'removed': self.removed},
        )
