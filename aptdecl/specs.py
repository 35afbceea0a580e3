from dataclasses import dataclass

from aptdecl.constants import SPEC_KINDS


@dataclass(frozen=True)
class PackageSpec:
    """A desired package, group (meta-package) or external package."""

    kind: str
    name: str

    def to_config(self):
        """Return the YAML form used in module files."""
        if self.kind == 'package':
            return self.name
        return {self.kind: self.name}


def parse_package_spec(config) -> list[PackageSpec]:
    """Parse a spec entry (string or dict) into PackageSpec objects.

    A dict holding none of the known keys yields an empty list. A dict holding
    several yields one spec per key.
    """
    if config is None:
        return []

    if isinstance(config, str):
        name = config.strip()
        return [PackageSpec('package', name)] if name else []

    if isinstance(config, dict):
        return [PackageSpec(kind, str(config[kind])) for kind in SPEC_KINDS if config.get(kind)]

    return []


def parse_package_specs(entries) -> list[PackageSpec]:
    """Parse an ordered sequence of spec entries, keeping first occurrences."""
    seen = set()
    specs = []
    for entry in entries or []:
        for spec in parse_package_spec(entry):
            if spec not in seen:
                seen.add(spec)
                specs.append(spec)
    return specs


def format_spec(spec: PackageSpec) -> str:
    if spec.kind == 'package':
        return spec.name
    return f'{spec.name} ({spec.kind})'
