import yaml
from pathlib import Path

from aptdecl import constants
from aptdecl.output import info
from aptdecl.specs import PackageSpec, parse_package_specs


def load_config() -> dict:
    """Load main config."""
    if not constants.CONFIG_FILE.exists():
        return {}
    with open(constants.CONFIG_FILE) as f:
        return yaml.safe_load(f) or {}


def get_host_name() -> str:
    """Get configured host name."""
    config = load_config()
    if 'host' not in config:
        raise RuntimeError("No host configured. Run 'aptdecl init' first.")
    return config['host']


def get_host_file() -> Path:
    return constants.HOSTS_DIR / f'{get_host_name()}.yaml'


def load_host_config() -> dict:
    """Load host configuration."""
    path = get_host_file()
    if not path.exists():
        raise FileNotFoundError(f'Host config not found: {path}')
    with open(path) as f:
        return yaml.safe_load(f) or {}


def get_module_file(name: str) -> Path:
    return constants.MODULES_DIR / name / 'module.yaml'


def load_module(name: str) -> dict:
    """Load a module by name."""
    path = get_module_file(name)
    if not path.exists():
        raise FileNotFoundError(f'Module not found: {name}')
    with open(path) as f:
        return yaml.safe_load(f) or {}


def module_exists(name: str) -> bool:
    return get_module_file(name).exists()


def validate_modules() -> list[str]:
    """Validate all modules in host config exist. Returns list of missing modules."""
    host = load_host_config()
    return [name for name in host.get('modules', []) if not module_exists(name)]


def get_module_specs(name: str) -> list[PackageSpec]:
    return parse_package_specs(load_module(name).get('packages', []))


def get_declared_specs() -> list[PackageSpec]:
    """Get all package specs from enabled modules, first occurrence wins."""
    host = load_host_config()
    entries = []

    for module_name in host.get('modules', []):
        try:
            entries.extend(load_module(module_name).get('packages', []))
        except FileNotFoundError:
            pass

    return parse_package_specs(entries)


def use_sudo() -> bool:
    """Whether apt commands that change the system run through sudo."""
    try:
        host = load_host_config()
    except (RuntimeError, FileNotFoundError):
        return False
    return bool(host.get('sudo', False))


def ensure_module(name: str) -> tuple[Path, dict]:
    """Ensure module exists and is active. Returns (module_file, module_data)."""
    module_file = get_module_file(name)

    if not module_file.parent.exists():
        module_file.parent.mkdir(parents=True)
        info(f'Creating module: {name}')

    host_file = get_host_file()
    host_config = load_host_config()
    if name not in host_config.get('modules', []):
        host_config.setdefault('modules', []).append(name)
        save_yaml(host_file, host_config)
        info(f'Added {name} to host config')

    if module_file.exists():
        with open(module_file) as f:
            module_data = yaml.safe_load(f) or {}
    else:
        module_data = {}

    return module_file, module_data


def save_yaml(path: Path, data: dict):
    """Save YAML consistently."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
