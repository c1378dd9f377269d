#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CSV export functionality for OCPP voltage log analysis
"""

import pandas as pd
from datetime import datetime
from pathlib import Path

from .utils import parse_timestamp, to_iso


TRIPLET_COLUMNS = ['timestamp', 'dataset', 'connector', 'L1', 'L2', 'L3', 'delta', 'status', 'session', 'sessionId']


def _fmt_voltage(value):
    return '' if value is None else f"{value:.2f}"


def _output_path(prefix, output_dir=None, filename=None):
    if not filename:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{prefix}_{timestamp}.csv"
    base = Path(output_dir) if output_dir else Path.cwd()
    return base / filename


class CsvExporter:
    """Handles CSV export and re-import of triplet data"""

    @staticmethod
    def triplets_to_frame(triplets):
        """Flatten triplets into a DataFrame in the stable CSV column order

        Timestamps are ISO-8601 UTC, voltages and delta carry 2 decimals,
        absent phases are empty strings.
        """
        rows = []
        for t in triplets:
            rows.append({
                'timestamp': to_iso(t['ts']),
                'dataset': t.get('dataset', ''),
                'connector': t.get('connector_id', ''),
                'L1': _fmt_voltage(t.get('L1')),
                'L2': _fmt_voltage(t.get('L2')),
                'L3': _fmt_voltage(t.get('L3')),
                'delta': f"{t.get('delta', 0.0):.2f}",
                'status': t.get('status', ''),
                'session': t.get('session', ''),
                'sessionId': t.get('session_id') or '',
            })
        return pd.DataFrame(rows, columns=TRIPLET_COLUMNS)

    @staticmethod
    def export_triplets_to_csv(triplets, output_dir=None, filename=None):
        """Export triplets to CSV using pandas

        Args:
            triplets: List of triplet dictionaries
            output_dir: Optional output directory (default: current directory)
            filename: Optional file name (default: timestamped)

        Returns:
            Path to exported CSV file, or None when there is nothing to export
        """
        if not triplets:
            return None

        df = CsvExporter.triplets_to_frame(triplets)
        output_path = _output_path("VoltageTriplets", output_dir, filename)
        df.to_csv(output_path, index=False)

        return output_path

    @staticmethod
    def read_triplets_csv(path):
        """Read a triplet CSV back into triplet-shaped dictionaries

        Args:
            path: CSV written by export_triplets_to_csv

        Returns:
            List of dicts with ts, dataset, connector_id, L1, L2, L3,
            delta, status, session, session_id
        """
        df = pd.read_csv(path, dtype=str, keep_default_na=False)

        def as_float(value):
            return float(value) if value != '' else None

        triplets = []
        for row in df.to_dict('records'):
            triplets.append({
                'ts': parse_timestamp(row['timestamp']),
                'dataset': row['dataset'],
                'connector_id': int(row['connector']) if row['connector'] != '' else None,
                'L1': as_float(row['L1']),
                'L2': as_float(row['L2']),
                'L3': as_float(row['L3']),
                'delta': as_float(row['delta']) or 0.0,
                'status': row['status'],
                'session': row['session'],
                'session_id': row['sessionId'] or None,
            })
        return triplets

    @staticmethod
    def export_incidents_to_csv(files, output_dir=None, filename=None):
        """Export parsing incidents of all files to a separate CSV file

        Args:
            files: List of FileData dictionaries
            output_dir: Optional output directory
            filename: Optional file name (default: timestamped)

        Returns:
            Path to exported CSV file, or None when there are no incidents
        """
        rows = []
        for f in files:
            for incident in f.get('parsing_errors', []):
                rows.append({'dataset': f['name'], 'incident': incident})

        if not rows:
            return None

        df = pd.DataFrame(rows, columns=['dataset', 'incident'])
        output_path = _output_path("VoltageIncidents", output_dir, filename)
        df.to_csv(output_path, index=False)

        return output_path
