"""Errors raised at the package-manager seam.

All of them propagate out of a reconciliation run except dependency lookups
for externals, which are reported and skipped.
"""


class AptdeclError(Exception):
    """Base class for aptdecl errors."""


class QueryError(AptdeclError):
    """A read-only package query (installed list, group members) failed."""


class DependencyLookupError(AptdeclError):
    """Dependencies of a single package could not be looked up."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(
            f'Could not look up dependencies of package "{package}"; possibly this is a group?'
        )


class GroupLookupError(DependencyLookupError):
    """Members of a group could not be looked up."""

    def __init__(self, group: str):
        self.package = group
        AptdeclError.__init__(self, f'Could not look up members of group "{group}"')


class InstallCommandError(AptdeclError):
    """The combined install command exited non-zero or could not start."""

    def __init__(self, command: list[str], returncode: int | None = None):
        self.command = command
        self.returncode = returncode
        detail = 'could not be started' if returncode is None else f'exited with status {returncode}'
        super().__init__(f'Install command {detail}: {" ".join(command)}')
