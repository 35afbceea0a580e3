import socket
import typer

from aptdecl import __version__, constants
from aptdecl.apt import AptBackend
from aptdecl.config import (
    ensure_module,
    get_declared_specs,
    get_host_file,
    get_host_name,
    get_module_file,
    get_module_specs,
    load_host_config,
    load_module,
    module_exists,
    save_yaml,
    use_sudo,
    validate_modules,
)
from aptdecl.errors import AptdeclError
from aptdecl.output import added, error, header, info, removed, set_verbose, success, warning
from aptdecl.plan import diff_installed, partition_specs
from aptdecl.reconcile import reconcile
from aptdecl.specs import PackageSpec, format_spec, parse_package_spec
from aptdecl.state import ChangeLog, SystemState

app = typer.Typer(
    name='aptdecl',
    help='Declarative apt package reconciler',
    context_settings={
        'help_option_names': ['--help', '-h'],
    },
)
module_app = typer.Typer(help='Manage modules')
app.add_typer(module_app, name='module')


def get_backend() -> AptBackend:
    return AptBackend(sudo=use_sudo())


def version_callback(value: bool):
    if value:
        typer.echo(f'aptdecl {__version__}')
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, '--version', '-v', callback=version_callback, is_eager=True, help='Show version'
    ),
    verbose: bool = typer.Option(False, '--verbose', help='Print the commands being run'),
):
    """Declarative apt package reconciler."""
    set_verbose(verbose)


def print_diff(diff):
    for name, version in sorted(diff.added.items()):
        added(f'{name}@{version}')
    for name, versions in sorted(diff.updated.items()):
        info(f'  ~ {name}: {versions["from"]} -> {versions["to"]}')
    for name, version in sorted(diff.removed.items()):
        removed(f'{name}@{version}')


@app.command()
def init(host: str = typer.Option(None, '--host', '-H', help='Host name (defaults to hostname)')):
    """Initialize aptdecl configuration."""
    if host is None:
        host = socket.gethostname()

    constants.HOSTS_DIR.mkdir(parents=True, exist_ok=True)
    constants.MODULES_DIR.mkdir(parents=True, exist_ok=True)

    if not constants.CONFIG_FILE.exists():
        save_yaml(constants.CONFIG_FILE, {'host': host})
        success(f'Created {constants.CONFIG_FILE}')
    else:
        info(f'Config already exists: {constants.CONFIG_FILE}')

    host_file = constants.HOSTS_DIR / f'{host}.yaml'
    if not host_file.exists():
        save_yaml(host_file, {'sudo': False, 'modules': ['base']})
        success(f'Created {host_file}')
    else:
        info(f'Host config already exists: {host_file}')

    base_module = get_module_file('base')
    if not base_module.exists():
        save_yaml(base_module, {'packages': []})
        success(f'Created {base_module}')
    else:
        info(f'Base module already exists: {base_module}')

    gitignore = constants.CONFIG_DIR / '.gitignore'
    if not gitignore.exists():
        with open(gitignore, 'w') as f:
            f.write('state.yaml\n')
            f.write('changes.yaml\n')
        success(f'Created {gitignore}')

    header(f'Initialized aptdecl for host: {host}')
    info("Add packages with 'aptdecl add', then run 'aptdecl sync'")


@app.command()
def sync():
    """Install declared packages and record what changed."""
    missing = validate_modules()
    if missing:
        error('Missing modules:')
        for m in missing:
            warning(f'  {m}')
        error('Fix your host config or create the missing modules.')
        raise typer.Exit(1)

    specs = get_declared_specs()
    state = SystemState.load()
    change_log = ChangeLog.load()

    try:
        result = reconcile(specs, get_backend(), change_log)
    except AptdeclError as e:
        error(str(e))
        raise typer.Exit(1)

    if result is None:
        return

    state.update(result.installed_after)
    state.save()
    change_log.save()

    if result.to_remove:
        info(f'{len(result.to_remove)} package(s) not retained (not removed)')

    if result.diff.empty:
        success('Packages in sync')
    else:
        success(
            f'Sync complete: {len(result.diff.added)} installed, '
            f'{len(result.diff.updated)} upgraded, {len(result.diff.removed)} removed'
        )


@app.command()
def status():
    """Show declarations and drift since the last sync."""
    host = get_host_name()

    missing = validate_modules()
    if missing:
        warning('Missing modules:')
        for m in missing:
            warning(f'  {m}')

    groups, packages, externals = partition_specs(get_declared_specs())
    state = SystemState.load()

    info(f'Host: {host}')
    info(f'Declared: {len(packages)} packages, {len(groups)} groups, {len(externals)} externals')
    info(f'Last sync: {state.last_sync or "never"}')

    if state.last_sync is None:
        return

    try:
        installed = get_backend().list_installed()
    except AptdeclError as e:
        error(str(e))
        raise typer.Exit(1)

    diff = diff_installed(state.packages, installed)
    if diff.empty:
        success('No changes since last sync')
    else:
        header('Changed since last sync:')
        print_diff(diff)


@app.command()
def changes(clear: bool = typer.Option(False, '--clear', help='Forget recorded changes')):
    """Show package changes recorded by sync."""
    log = ChangeLog.load()

    if clear:
        log.clear()
        log.save()
        success('Change log cleared')
        return

    if log.empty:
        info('No changes recorded')
        return

    if log.added:
        header('Installed:')
        for name, version in sorted(log.added.items()):
            added(f'{name}@{version}')
    if log.updated:
        header('Upgraded:')
        for name, versions in sorted(log.updated.items()):
            info(f'  {name}: {versions["from"]} -> {versions["to"]}')
    if log.removed:
        header('Removed:')
        for name, version in sorted(log.removed.items()):
            removed(f'{name}@{version}')


@app.command()
def deps(
    name: str = typer.Argument(..., help='Package or group name'),
    group: bool = typer.Option(False, '--group', '-g', help='Look up members of a group'),
):
    """Show the dependencies aptdecl would retain for a name."""
    backend = get_backend()
    try:
        names = backend.dependencies_of_group(name) if group else backend.resolve_dependencies(name)
    except AptdeclError as e:
        error(str(e))
        raise typer.Exit(1)

    for dep in names:
        info(dep)


@app.command()
def add(
    names: list[str] = typer.Argument(..., help='Name(s) to add'),
    module: str = typer.Option(None, '-m', '--module', help='Target module (default: local)'),
    group: bool = typer.Option(False, '--group', '-g', help='Add as group'),
    external: bool = typer.Option(False, '--external', '-e', help='Add as external (never installed)'),
):
    """Add package(s) to a module. Run 'aptdecl sync' to install."""
    if group and external:
        error('--group and --external are mutually exclusive')
        raise typer.Exit(1)

    kind = 'group' if group else 'external' if external else 'package'
    target = module or 'local'
    module_file, module_data = ensure_module(target)

    entries = module_data.setdefault('packages', [])
    existing = {spec for entry in entries for spec in parse_package_spec(entry)}
    count = 0

    for name in names:
        spec = PackageSpec(kind, name)
        if spec in existing:
            warning(f'{format_spec(spec)} already in {target}')
            continue
        entries.append(spec.to_config())
        existing.add(spec)
        added(f'{format_spec(spec)} → {target}')
        count += 1

    if count:
        save_yaml(module_file, module_data)


@app.command()
def drop(names: list[str] = typer.Argument(..., help='Name(s) to remove')):
    """Remove package(s) from all modules. Nothing is uninstalled."""
    host = load_host_config()

    for name in names:
        found = False
        for module_name in host.get('modules', []):
            if not module_exists(module_name):
                continue

            module_data = load_module(module_name)
            entries = module_data.get('packages', [])
            kept = [e for e in entries if name not in {s.name for s in parse_package_spec(e)}]

            if len(kept) != len(entries):
                found = True
                module_data['packages'] = kept
                save_yaml(get_module_file(module_name), module_data)
                removed(f'{name} ← {module_name}')

        if not found:
            warning(f'{name} not found in any module')


@module_app.command('list')
def module_list():
    """List all modules."""
    enabled = load_host_config().get('modules', [])

    names = []
    if constants.MODULES_DIR.exists():
        names = [p.name for p in constants.MODULES_DIR.iterdir() if (p / 'module.yaml').exists()]

    for name in sorted(names):
        groups, packages, externals = partition_specs(get_module_specs(name))
        mark = '✓' if name in enabled else '○'
        info(f'{mark} {name}: {len(packages)} packages, {len(groups)} groups, {len(externals)} externals')

    for name in enabled:
        if name not in names:
            warning(f'○ {name}: missing module.yaml')


@module_app.command('new')
def module_new(names: list[str] = typer.Argument(..., help='Module name(s) to create')):
    """Create new empty module(s)."""
    for name in names:
        if module_exists(name):
            warning(f'{name} already exists')
            continue
        save_yaml(get_module_file(name), {'packages': []})
        success(f'Created {name}')


@module_app.command('on')
def module_on(names: list[str] = typer.Argument(..., help='Module(s) to activate')):
    """Activate module(s)."""
    host = load_host_config()
    modules = host.setdefault('modules', [])

    for name in names:
        if not module_exists(name):
            warning(f'{name} not found')
        elif name in modules:
            info(f'{name} already active')
        else:
            modules.append(name)
            added(name)

    save_yaml(get_host_file(), host)


@module_app.command('off')
def module_off(names: list[str] = typer.Argument(..., help='Module(s) to deactivate')):
    """Deactivate module(s)."""
    host = load_host_config()
    modules = host.get('modules', [])

    for name in names:
        if name not in modules:
            info(f'{name} not active')
        else:
            modules.remove(name)
            removed(name)

    save_yaml(get_host_file(), host)


@module_app.command('show')
def module_show(name: str = typer.Argument(..., help='Module to show')):
    """Show module contents."""
    specs = get_module_specs(name)
    active = name in load_host_config().get('modules', [])
    info(f'{name} ({"active" if active else "inactive"})')

    groups, packages, externals = partition_specs(specs)
    for title, items in (('Groups:', groups), ('Packages:', packages), ('Externals:', externals)):
        if items:
            header(title)
            for item in items:
                info(f'  {item}')


def main():
    app()


if __name__ == '__main__':
    main()
