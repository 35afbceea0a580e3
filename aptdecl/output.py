from rich.console import Console

console = Console()

_verbose = False


def set_verbose(enabled: bool):
    global _verbose
    _verbose = enabled


def info(msg: str):
    console.print(msg)


def success(msg: str):
    console.print(f'[green]✓[/green] {msg}')


def warning(msg: str):
    console.print(f'[yellow]![/yellow] {msg}')


def error(msg: str):
    console.print(f'[red]✗[/red] {msg}')


def added(msg: str):
    console.print(f'[green]  + {msg}[/green]')


def removed(msg: str):
    console.print(f'[red]  - {msg}[/red]')


def header(msg: str):
    console.print(f'\n[bold]{msg}[/bold]')


def audit(msg: str):
    """Print a machine-readable audit line verbatim."""
    console.print(msg, markup=False, highlight=False, soft_wrap=True)


def debug(msg: str):
    if _verbose:
        console.print(f'[dim]$ {msg}[/dim]', highlight=False)
