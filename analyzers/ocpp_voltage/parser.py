#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Log parsing and reconciliation for OCPP voltage logs

Raw text -> marker scans (one full pass per message family) -> context
tables + voltage points -> triplets -> session/status/device enrichment
-> status evaluation -> FileData.
"""

from __future__ import annotations
import re
from pathlib import Path
from typing import Callable, Dict, List, Any, Optional

from .context import ParseContext
from .detectors import (
    FirmwareDetector,
    HardwareDetector,
    MeterValuesDetector,
    OcppTransactionDetector,
    StatusTimeline,
)
from .evaluator import compute_delta, evaluate_status
from .settings import DEFAULT_VMAX, DEFAULT_VMIN
from .utils import extract_json_from


Handler = Callable[[ParseContext, Any, int], None]

# Marker -> handler, scanned in this order
MESSAGE_HANDLERS: Dict[str, Handler] = {
    'BootNotification': FirmwareDetector.handle_boot_notification,
    'GetConfiguration': HardwareDetector.handle_get_configuration,
    'DataTransfer': HardwareDetector.handle_data_transfer,
    'StatusNotification': StatusTimeline.handle_status_notification,
    'StartTransaction': OcppTransactionDetector.handle_start_transaction,
    'StopTransaction': OcppTransactionDetector.handle_stop_transaction,
    'MeterValues': MeterValuesDetector.handle_meter_values,
}

RAW_TEXT_SNIPPET = 100


def scan(text: str, marker: str, handler: Callable[[Any, int], None]):
    """Call handler(obj, pos) for every occurrence of `marker`

    The JSON object following each occurrence is extracted; occurrences
    without a parseable object are skipped silently.
    """
    cursor = 0
    while True:
        pos = text.find(marker, cursor)
        if pos < 0:
            break
        obj = extract_json_from(text, pos)
        if isinstance(obj, dict):
            handler(obj, pos)
        cursor = pos + len(marker)


def count_alert_lines(text: str) -> Dict[str, int]:
    """Count lines mentioning AC together with all three phases"""
    alert_counts: Dict[str, int] = {}
    for line in re.split(r'\r?\n', text):
        s = line.upper()
        if 'AC' in s and 'L1' in s and 'L2' in s and 'L3' in s:
            alert_counts['Voltage Alert'] = alert_counts.get('Voltage Alert', 0) + 1
    return alert_counts


def finalize_triplets(ctx: ParseContext, triplets: List[Dict[str, Any]], vmin: float, vmax: float) -> List[Dict[str, Any]]:
    """Attach delta, status, session linkage and device metadata

    Args:
        ctx: Parse context with all scans completed
        triplets: Output of MeterValuesDetector.build_triplets
        vmin: Undervoltage threshold
        vmax: Overvoltage threshold

    Returns:
        Triplets sorted by timestamp
    """
    spans_by_connector = OcppTransactionDetector.spans_by_connector(ctx)
    boot = ctx.boot_info
    finalized = []

    for t in triplets:
        t['delta'] = compute_delta(t)
        t['status'], t['deviation_details'] = evaluate_status(t, vmin, vmax)

        span = OcppTransactionDetector.match_session(spans_by_connector.get(t['connector_id'], []), t['ts'])
        if span:
            t['session'] = 'session'
            t['session_id'] = span['tx']
            if span.get('id_tag'):
                t['id_tag'] = span['id_tag']
        else:
            t['session'] = 'idle'

        for field in ('charge_point_vendor', 'charge_point_model', 'firmware_version'):
            if boot.get(field):
                t[field] = boot[field]

        connector_type = HardwareDetector.connector_type_for(ctx, t['connector_id'])
        if connector_type:
            t['connector_type'] = connector_type
        controller_version = ctx.controller_version_by_connector.get(t['connector_id'])
        if controller_version:
            t['controller_version'] = controller_version
        controller_name = ctx.controller_name_by_connector.get(t['connector_id'])
        if controller_name:
            t['controller_name'] = controller_name

        event = StatusTimeline.find_status_at(
            StatusTimeline.timeline_for(ctx.status_timeline, t['connector_id']), t['ts'])
        if event:
            if event.get('status'):
                t['session_status'] = event['status']
            if event.get('error_code'):
                t['session_error_code'] = event['error_code']

        finalized.append(t)

    finalized.sort(key=lambda x: x['ts'])
    return finalized


def parse_log_text(text: str, name: str, vmin: float = DEFAULT_VMIN, vmax: float = DEFAULT_VMAX,
                   size: Optional[int] = None) -> Dict[str, Any]:
    """Parse one log blob into a FileData dict

    Never raises on content: bad samples become entries in
    'parsing_errors', missing metadata stays absent.

    Args:
        text: Whole log file contents
        name: Dataset name (usually the file name)
        vmin: Undervoltage threshold
        vmax: Overvoltage threshold
        size: File size in bytes (defaults to the UTF-8 length of text)

    Returns:
        Dict with name, size, enabled, alert_counts, triplets,
        parsing_errors, raw_text
    """
    ctx = ParseContext(text, name)

    for marker, handler in MESSAGE_HANDLERS.items():
        scan(text, marker, lambda obj, pos, h=handler: h(ctx, obj, pos))

    FirmwareDetector.apply_text_fallback(ctx)
    HardwareDetector.apply_text_fallback(ctx)
    StatusTimeline.sort_timelines(ctx)

    triplets = MeterValuesDetector.build_triplets(ctx.points)
    triplets = finalize_triplets(ctx, triplets, vmin, vmax)

    return {
        'name': name,
        'size': size if size is not None else len(text.encode('utf-8')),
        'enabled': True,
        'alert_counts': count_alert_lines(text),
        'triplets': triplets,
        'parsing_errors': ctx.parsing_errors,
        'raw_text': text[:RAW_TEXT_SNIPPET],
    }


def parse_log_file(path, vmin: float = DEFAULT_VMIN, vmax: float = DEFAULT_VMAX) -> Dict[str, Any]:
    """Read a log file from disk and parse it

    Raises:
        OSError: If the file cannot be read
    """
    path = Path(path)
    data = path.read_bytes()
    text = data.decode('utf-8', errors='replace')
    return parse_log_text(text, path.name, vmin, vmax, size=len(data))
