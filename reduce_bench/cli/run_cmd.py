"""
Measurement CLI commands.

Commands:
- reducebench run [COUNT]  - Discover targets, register cases and measure them
- reducebench list         - Show the cases that would be measured
- reducebench targets      - Show discovered compute targets only
"""

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from ..dataset import DEFAULT_SIZE, parse_size


def _add_count_argument(parser):
    parser.add_argument(
        'count',
        nargs='?',
        default=str(DEFAULT_SIZE),
        help=f'Number of float32 elements to sum (default: {DEFAULT_SIZE}, one GiB)'
    )


def add_run_parser(subparsers):
    """Add run subcommand parser."""
    parser = subparsers.add_parser(
        'run',
        help='Measure every available summation strategy',
        description='Measure throughput and relative error of each registered summation case'
    )

    _add_count_argument(parser)

    parser.add_argument(
        '--filter', '-f',
        dest='pattern',
        help='Only run cases whose name matches this regular expression'
    )

    parser.add_argument(
        '--min-time', '-t',
        type=float,
        default=0.5,
        help='Minimum measured seconds per case (default: 0.5)'
    )

    parser.add_argument(
        '--min-iterations', '-n',
        type=int,
        default=1,
        help='Minimum timed invocations per case (default: 1)'
    )

    parser.add_argument(
        '--warmup',
        type=int,
        default=1,
        help='Untimed invocations before measuring (default: 1)'
    )

    parser.add_argument(
        '--threads',
        type=int,
        default=1,
        help='Measuring threads invoking each accumulator concurrently (default: 1)'
    )

    parser.add_argument(
        '--output', '-o',
        help='Save results to JSON file'
    )

    parser.add_argument(
        '--plot',
        help='Save a throughput vs. error plot (PNG)'
    )

    return parser


def add_list_parser(subparsers):
    """Add list subcommand parser."""
    parser = subparsers.add_parser(
        'list',
        help='List registered cases',
        description='Run discovery and list the cases a run would measure'
    )
    parser.add_argument(
        '--filter', '-f',
        dest='pattern',
        help='Only list cases whose name matches this regular expression'
    )
    return parser


def add_targets_parser(subparsers):
    """Add targets subcommand parser."""
    return subparsers.add_parser(
        'targets',
        help='Show discovered compute targets',
        description='Print the CUDA device count and every OpenCL target found'
    )


def handle_run(args):
    """Handle run subcommand."""
    from ..measure import MeasureSettings
    from ..registry import discover_cases
    from ..runner import run_cases, save_results

    console = Console()

    try:
        size = parse_size(args.count)
        settings = MeasureSettings(
            min_time=args.min_time,
            min_iterations=args.min_iterations,
            warmup=args.warmup,
            threads=args.threads,
        )
        cases = discover_cases(pattern=args.pattern)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        return 1

    if not cases:
        console.print("[yellow]No cases registered.[/yellow]")
        return 0

    console.print(f"[cyan]Measuring {len(cases)} case(s) over {size:,} elements...[/cyan]\n")

    with console.status("") as status:
        results = run_cases(
            cases,
            size=size,
            settings=settings,
            progress=lambda name: status.update(f"[cyan]{name}[/cyan]"),
        )

    _show_results(console, results)

    if args.output:
        try:
            save_results(results, args.output)
            console.print(f"\n[green]Results saved to: {args.output}[/green]")
        except OSError as e:
            console.print(f"\n[red]Failed to save results: {e}[/red]")
            return 1

    if args.plot:
        from ..plotting import plot_results
        try:
            plot_results(results, args.plot)
            console.print(f"[green]Plot saved to: {args.plot}[/green]")
        except OSError as e:
            console.print(f"[red]Failed to save plot: {e}[/red]")
            return 1

    return 0


def handle_list(args):
    """Handle list subcommand."""
    from ..registry import discover_cases

    console = Console()

    try:
        cases = discover_cases(pattern=args.pattern)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        return 1

    table = Table(title="Registered Cases", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Backend", style="yellow", width=8)
    table.add_column("Description", style="white")

    for case in cases:
        table.add_row(case.name, case.backend, case.description)

    console.print(table)
    console.print(f"\n[dim]Total: {len(cases)} case(s)[/dim]")
    console.print("[dim]Run with: reducebench run [COUNT] --filter <regex>[/dim]")
    return 0


def handle_targets(args):
    """Handle targets subcommand."""
    from ..registry import discover_targets, report_targets

    console = Console()
    cuda_devices, targets = discover_targets()

    report_targets(cuda_devices, targets, console=console)
    if not targets:
        console.print("[dim]No OpenCL GPU targets found.[/dim]")
    return 0


def _format_rate(value: float, unit: str) -> str:
    for prefix in ['', 'K', 'M', 'G', 'T']:
        if abs(value) < 1000.0:
            return f"{value:.2f} {prefix}{unit}"
        value /= 1000.0
    return f"{value:.2f} P{unit}"


def _show_results(console: Console, results: dict):
    """Display measurement results."""
    if results.get('system'):
        sys_info = results['system']
        console.print(Panel(
            f"[cyan]CPU:[/cyan] {sys_info['cpu']}\n"
            f"[cyan]Cores:[/cyan] {sys_info['cores']}\n"
            f"[cyan]Architecture:[/cyan] {sys_info['arch']}\n"
            f"[cyan]Elements:[/cyan] {results['size']:,} (expected sum {results['expected']:,.1f})",
            title="System Information",
            border_style="blue"
        ))
        console.print()

    measurements = results.get('results', {})

    if measurements:
        table = Table(title="Summation Results", show_header=True, header_style="bold cyan")
        table.add_column("Case", style="cyan", no_wrap=True)
        table.add_column("Iterations", justify="right", style="white")
        table.add_column("elements/s", justify="right", style="green")
        table.add_column("bytes/s", justify="right", style="green")
        table.add_column("error,%", justify="right", style="magenta")
        table.add_column("Sum", justify="right", style="white")

        previous_backend = None
        for name, result in measurements.items():
            backend = result.get('backend')
            if previous_backend is not None and backend != previous_backend:
                table.add_section()
            previous_backend = backend

            table.add_row(
                name,
                str(result['iterations']),
                _format_rate(result['elements_per_second'], 'el/s'),
                _format_rate(result['bytes_per_second'], 'B/s'),
                f"{result['error_percent']:.4g}",
                f"{result['last_sum']:.7g}",
            )

        console.print(table)

    if results.get('errors'):
        console.print()
        for name, error in results['errors'].items():
            console.print(f"[yellow]Warning:[/yellow] {name}: {error}")
