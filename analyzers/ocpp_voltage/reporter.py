#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Report generation for OCPP voltage log analysis
"""

from datetime import datetime, timezone
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

console = Console()


RISK_STYLE = {
    'high': 'bold red',
    'medium': 'bold yellow',
    'low': 'bold green',
}


def format_ts(ts, tzinfo):
    """Render epoch milliseconds in the display timezone"""
    if ts is None:
        return '-'
    try:
        dt = datetime.fromtimestamp(ts / 1000, tz=timezone.utc).astimezone(tzinfo)
    except (OverflowError, ValueError, OSError):
        return str(ts)
    return dt.strftime('%Y-%m-%d %H:%M:%S %Z')


def file_metadata(file_data):
    """First vendor/model/firmware/connector type seen in a file's triplets"""
    meta = {}
    for t in file_data.get('triplets', []):
        for field in ('charge_point_vendor', 'charge_point_model', 'firmware_version', 'connector_type'):
            if field not in meta and t.get(field):
                meta[field] = t[field]
    return meta


class Reporter:
    """Handles all terminal output and report generation"""

    @staticmethod
    def generate_file_table(files):
        """Per-file summary table

        Args:
            files: List of FileData dictionaries
        """
        table = Table(title="Parsed Log Files", show_header=True, header_style="bold magenta")
        table.add_column("File", style="cyan", no_wrap=True)
        table.add_column("Enabled", justify="center")
        table.add_column("Triplets", justify="right")
        table.add_column("Session\nRows", justify="right")
        table.add_column("Incidents", justify="right", style="red")
        table.add_column("Vendor / Model", style="dim")
        table.add_column("Firmware", style="dim")
        table.add_column("Connector", style="dim")

        for f in files:
            meta = file_metadata(f)
            triplets = f.get('triplets', [])
            session_rows = sum(1 for t in triplets if t.get('session') == 'session')
            incidents = len(f.get('parsing_errors', []))
            vendor_model = ' '.join(
                v for v in (meta.get('charge_point_vendor'), meta.get('charge_point_model')) if v
            ) or '-'

            table.add_row(
                escape(f['name']),
                "[green]✓[/green]" if f.get('enabled', True) else "[dim]✗[/dim]",
                str(len(triplets)),
                str(session_rows) if session_rows else '-',
                f"[bold red]{incidents}[/bold red]" if incidents else '-',
                vendor_model,
                meta.get('firmware_version', '-'),
                meta.get('connector_type', '-'),
            )

        console.print(table)
        console.print()

    @staticmethod
    def generate_summary_report(files, stats, incident_summary, settings, tzinfo):
        """Generate and display the dashboard summary with rich tables

        Args:
            files: List of FileData dictionaries
            stats: AnalysisStats dictionary
            incident_summary: Output of summarize_incidents
            settings: Settings dictionary (vmin, vmax, timezone)
            tzinfo: Display timezone
        """
        if not files:
            console.print("\n[yellow]No results to display.[/yellow]")
            return

        console.print()
        console.rule("[bold cyan]VOLTAGE SUMMARY REPORT[/bold cyan]", style="cyan")
        console.print()

        Reporter.generate_file_table(files)

        if stats['total_points'] == 0:
            console.print("[yellow]No voltage samples found in the enabled files.[/yellow]\n")
        else:
            Reporter._show_dashboard(stats, settings, tzinfo)
            Reporter._show_phase_table(stats)

        Reporter._show_incidents(incident_summary)

    @staticmethod
    def _show_dashboard(stats, settings, tzinfo):
        risk = stats['risk_level']
        style = RISK_STYLE.get(risk, 'white')
        lines = [
            f"[bold]Period:[/bold] {format_ts(stats['start_time'], tzinfo)} → {format_ts(stats['end_time'], tzinfo)}"
            f" ({stats['duration_hours']:.1f} h)",
            f"[bold]Triplets:[/bold] {stats['total_points']}",
            f"[bold]Thresholds:[/bold] {settings['vmin']:.0f} V - {settings['vmax']:.0f} V",
            f"[red]Under:[/red] {stats['cnt_under']}  [red]Over:[/red] {stats['cnt_over']}  "
            f"[yellow]Imbalance:[/yellow] {stats['cnt_imbalance']}  [bold red]Deep dips (<190 V):[/bold red] {stats['cnt_deep_dip']}",
            f"[bold]Max imbalance:[/bold] {stats['max_delta']:.1f} V",
            f"[bold]Parsing incidents:[/bold] {stats['cnt_invalid_dates']}",
            f"[bold]Risk level:[/bold] [{style}]{risk.upper()}[/{style}]",
        ]
        console.print(Panel("\n".join(lines), title="Analysis", border_style="cyan"))
        console.print()

    @staticmethod
    def _show_phase_table(stats):
        table = Table(title="Per-Phase Statistics", show_header=True, header_style="bold magenta")
        table.add_column("Phase", style="cyan")
        table.add_column("Min (V)", justify="right")
        table.add_column("Max (V)", justify="right")
        table.add_column("Avg (V)", justify="right")
        table.add_column("Under", justify="right", style="red")
        table.add_column("Over", justify="right", style="red")
        table.add_column("Zero", justify="right", style="red")

        for phase, ps in stats['phases'].items():
            table.add_row(
                phase,
                f"{ps['min']:.1f}",
                f"{ps['max']:.1f}",
                f"{ps['avg']:.1f}",
                str(ps['under_count']) if ps['under_count'] else '-',
                str(ps['over_count']) if ps['over_count'] else '-',
                str(ps['zero_count']) if ps['zero_count'] else '-',
            )

        console.print(table)
        console.print()

    @staticmethod
    def _show_incidents(incident_summary):
        errors = incident_summary['errors']
        if not errors:
            console.print("[green]✓ No parsing incidents![/green]\n")
            return

        console.rule("[bold yellow]INCIDENTS[/bold yellow]", style="yellow")
        console.print(f"[yellow]⚠ {len(errors)} incident(s) recorded[/yellow]")
        if incident_summary['suspicious_count']:
            console.print(f"[red]  Bad timestamps: {incident_summary['suspicious_count']}[/red]")
            for sample in incident_summary['suspicious_samples']:
                console.print(f"[dim]    {escape(sample)}[/dim]")
        console.print()

        for incident in incident_summary['unique']:
            console.print(f"   • {escape(incident)}", highlight=False)
        if incident_summary['truncated']:
            console.print(f"[dim]  Showing first {len(incident_summary['unique'])} unique incidents.[/dim]")
        console.print()
