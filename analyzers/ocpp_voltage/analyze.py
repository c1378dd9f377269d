#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
OCPP Voltage Log Analysis Tool
Purpose: Turn charge point logs into a time-aligned voltage quality dataset

Analyzes charge point logs for:
- Per-phase voltage (L1/L2/L3) aligned per second and connector
- Over/under voltage and phase imbalance
- Charging session linkage (transactions, connector status)
- Corrupted or implausible timestamps
"""

import argparse
import sys
from pathlib import Path
from rich.console import Console
from rich.progress import track

console = Console()

# Fix Windows encoding issues with Unicode characters
if sys.platform == 'win32':
    try:
        sys.stdout.reconfigure(encoding='utf-8')
    except AttributeError:
        pass

from .exporter import CsvExporter
from .parser import parse_log_file, parse_log_text
from .reporter import Reporter
from .settings import build_settings, display_tz
from .stats import aggregate_triplets, compute_analysis_stats, summarize_incidents


class VoltageAnalyzer:
    """Holds the parsed files of one analysis session

    Files are parsed once with the thresholds active at load time; status
    is re-evaluated on demand when the thresholds change.
    """

    def __init__(self, settings=None):
        self.settings = settings or build_settings()
        self.files = []

    def set_thresholds(self, vmin=None, vmax=None):
        """Replace thresholds (validated); no re-parsing is needed"""
        self.settings = build_settings(
            self.settings['vmin'] if vmin is None else vmin,
            self.settings['vmax'] if vmax is None else vmax,
            self.settings['timezone'],
        )

    def add_text(self, name, text, size=None):
        """Parse an in-memory log and add it to the session

        Returns:
            The FileData dictionary
        """
        file_data = parse_log_text(text, name, self.settings['vmin'], self.settings['vmax'], size=size)
        self.files.append(file_data)
        return file_data

    def load_file(self, path):
        """Parse a log file from disk and add it to the session

        Raises:
            OSError: If the file cannot be read
        """
        file_data = parse_log_file(path, self.settings['vmin'], self.settings['vmax'])
        self.files.append(file_data)
        return file_data

    def load_files(self, paths):
        """Parse several files sequentially, skipping unreadable ones

        Returns:
            List of FileData dictionaries that were added
        """
        loaded = []
        for path in track(paths, description="[cyan]Parsing logs..."):
            try:
                loaded.append(self.load_file(path))
            except OSError as e:
                console.print(f"  ⚠ Could not read {Path(path).name}: {e}")
        return loaded

    def _find(self, name):
        matches = [f for f in self.files if f['name'] == name]
        if not matches:
            raise KeyError(name)
        return matches

    def remove_file(self, name):
        """Drop a file (and all its triplets) from the session"""
        self._find(name)
        self.files = [f for f in self.files if f['name'] != name]

    def set_enabled(self, name, enabled):
        """Include or exclude a file from aggregate computation"""
        for f in self._find(name):
            f['enabled'] = bool(enabled)

    def all_data(self):
        return aggregate_triplets(self.files, self.settings['vmin'], self.settings['vmax'])

    def analysis_stats(self):
        return compute_analysis_stats(self.files, self.settings['vmin'], self.settings['vmax'])

    def incident_summary(self):
        return summarize_incidents(self.files)

    def generate_summary_report(self):
        """Generate and display summary report using Reporter"""
        Reporter.generate_summary_report(
            self.files,
            self.analysis_stats(),
            self.incident_summary(),
            self.settings,
            display_tz(self.settings),
        )

    def export_csv(self, output_dir=None):
        """Export the aggregated triplets and incidents to CSV

        Returns:
            Tuple (triplets_path, incidents_path); either may be None
        """
        enabled = [f for f in self.files if f.get('enabled', True)]
        triplets_path = CsvExporter.export_triplets_to_csv(self.all_data(), output_dir)
        incidents_path = CsvExporter.export_incidents_to_csv(enabled, output_dir)
        return triplets_path, incidents_path


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Analyze charge point logs for voltage quality',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s station.log                          # Analyze one log with default thresholds (207-253 V)
  %(prog)s a.log b.log --vmin 200 --vmax 250    # Custom thresholds
  %(prog)s a.log b.log --disable b.log          # Parse both, aggregate only a.log
  %(prog)s a.log --export-csv ./out             # Also write triplet/incident CSV files
        '''
    )

    parser.add_argument('files', nargs='+', metavar='FILE',
                        help='Log file(s) to analyze')
    parser.add_argument('--vmin', type=float,
                        help='Undervoltage threshold in volts (default: 207)')
    parser.add_argument('--vmax', type=float,
                        help='Overvoltage threshold in volts (default: 253)')
    parser.add_argument('--timezone',
                        help='Display timezone (default: Europe/Kyiv)')
    parser.add_argument('--disable', nargs='*', metavar='NAME', default=[],
                        help='File name(s) to exclude from the aggregate')
    parser.add_argument('--export-csv', metavar='DIR',
                        help='Write triplet and incident CSV files to DIR')

    args = parser.parse_args(argv)

    try:
        settings = build_settings(args.vmin, args.vmax, args.timezone)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(2)

    console.print()
    console.rule("[bold cyan]OCPP VOLTAGE LOG ANALYZER[/bold cyan]", style="cyan")
    console.print("[dim]Per-second phase voltages, session linkage and timestamp sanity checks[/dim]")
    console.print()

    analyzer = VoltageAnalyzer(settings)
    analyzer.load_files(args.files)

    if not analyzer.files:
        console.print("[yellow]No log files could be read.[/yellow]")
        sys.exit(1)

    for name in args.disable:
        try:
            analyzer.set_enabled(name, False)
        except KeyError:
            console.print(f"[yellow]⚠ Not loaded, cannot disable: {name}[/yellow]")

    analyzer.generate_summary_report()

    if args.export_csv:
        output_dir = Path(args.export_csv)
        output_dir.mkdir(parents=True, exist_ok=True)
        triplets_path, incidents_path = analyzer.export_csv(output_dir)
        if triplets_path:
            console.print(f"[green]✓ Triplets exported:[/green] {triplets_path}")
        if incidents_path:
            console.print(f"[green]✓ Incidents exported:[/green] {incidents_path}")

    console.print("[bold green]✓ Analysis complete![/bold green]\n")


if __name__ == "__main__":
    main()
