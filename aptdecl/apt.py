import re
import subprocess

from aptdecl.errors import DependencyLookupError, GroupLookupError, InstallCommandError, QueryError
from aptdecl.output import debug

_FIELD_SPLIT = re.compile(r'[/ ]')


def parse_installed(output: str) -> dict[str, str]:
    """Parse `apt list --installed` output into {name: version}.

    Lines look like `git/jammy,now 1:2.34.1-1ubuntu1 amd64 [installed]`.
    """
    packages = {}
    for line in output.split('\n'):
        line = line.strip()
        if not line:
            continue
        fields = _FIELD_SPLIT.split(line)
        if len(fields) < 3 or not fields[2]:
            continue
        packages[fields[0]] = fields[2]
    return packages


def parse_depends(output: str) -> list[str]:
    """Parse `apt-rdepends` output into sorted, unique dependency names.

    Raises ValueError on a Depends line without a target.
    """
    names = set()
    for line in output.split('\n'):
        if 'Depends' not in line:
            continue
        tokens = line.split()
        if len(tokens) < 2:
            raise ValueError(f'Malformed dependency line: {line!r}')
        names.add(tokens[1].strip())
    names.discard('')
    return sorted(names)


class AptBackend:
    """Runs apt, apt-rdepends and friends one command at a time."""

    def __init__(self, sudo: bool = False):
        self.sudo = sudo

    def _privileged(self, cmd: list[str]) -> list[str]:
        if self.sudo:
            return ['sudo'] + cmd
        return cmd

    def _query(self, cmd: list[str]) -> str:
        debug(' '.join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return result.stdout

    def is_online(self) -> bool:
        """Refresh the package index. Returns True if apt could reach it."""
        cmd = self._privileged(['apt-get', 'update'])
        debug(' '.join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError:
            return False
        return result.returncode == 0

    def list_installed(self) -> dict[str, str]:
        """Get all installed packages with their versions."""
        try:
            output = self._query(['apt', 'list', '--installed'])
        except (OSError, subprocess.CalledProcessError) as e:
            raise QueryError(f'Could not list installed packages: {e}') from e
        return parse_installed(output)

    def _depends(self, name: str) -> list[str]:
        return parse_depends(self._query(['apt-rdepends', '-p', name]))

    def dependencies_of_group(self, group: str) -> list[str]:
        """Get members of a group. Groups are plain meta-packages to apt."""
        try:
            return self._depends(group)
        except (OSError, subprocess.CalledProcessError, ValueError) as e:
            raise GroupLookupError(group) from e

    def resolve_dependencies(self, name: str) -> list[str]:
        """Get transitive dependency names of a package."""
        try:
            return self._depends(name)
        except (OSError, subprocess.CalledProcessError, ValueError) as e:
            raise DependencyLookupError(name) from e

    def build_install_command(self, names: list[str]) -> list[str]:
        return self._privileged(['apt-get', 'install', '-y'] + list(names))

    def build_remove_command(self, names: list[str]) -> list[str]:
        return self._privileged(['apt-get', 'remove', '-y'] + list(names))

    def run_install(self, names: list[str]):
        """Install packages and groups, output passed through."""
        if not names:
            return
        cmd = self.build_install_command(names)
        debug(' '.join(cmd))
        try:
            result = subprocess.run(cmd)
        except OSError as e:
            raise InstallCommandError(cmd) from e
        if result.returncode != 0:
            raise InstallCommandError(cmd, result.returncode)
