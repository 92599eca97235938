"""
System specification CLI commands.

Commands:
- reducebench sysspec show           - Display system specification
- reducebench sysspec export <file>  - Export to JSON file
"""

from rich.console import Console

from ..system_spec import get_system_spec, print_system_report, export_system_spec


def add_sysspec_parser(subparsers):
    """Add sysspec subcommand parser."""
    parser = subparsers.add_parser(
        'sysspec',
        help='System specification display/export',
        description='Display or export the hardware, numerical stack and accelerators of this machine'
    )

    parser.add_argument(
        'action',
        choices=['show', 'export'],
        help='show: display to console | export: save to JSON file'
    )

    parser.add_argument(
        'file',
        nargs='?',
        help='Output file path (required for export)'
    )

    return parser


def handle_sysspec(args):
    """Handle sysspec subcommand."""
    console = Console()

    if args.action == 'show':
        print_system_report(get_system_spec(), console=console)
        return 0

    if not args.file:
        console.print("[red]Error:[/red] export action requires a file path", style="bold")
        console.print("Usage: reducebench sysspec export <file>")
        return 1

    try:
        export_system_spec(args.file, get_system_spec())
    except OSError as e:
        console.print(f"[red]Error:[/red] Failed to export: {e}", style="bold")
        return 1

    console.print(f"[green]✓[/green] System spec exported to: {args.file}")
    return 0
