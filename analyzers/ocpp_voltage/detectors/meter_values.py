#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Voltage sample extraction from MeterValues and per-second triplet building
"""

from __future__ import annotations
import re
from typing import Dict, List, Any, Optional

from ..context import ParseContext
from ..utils import is_plausible, parse_timestamp, parse_voltage_value, to_int, to_iso
from .ocpp_transactions import OcppTransactionDetector


# Readings at or above this are sensor garbage
MAX_SANE_VOLTAGE = 600

VOLTAGE_MEASURAND_RE = re.compile(r'^Voltage(\.L[123])?$', re.IGNORECASE)

PHASES = ('L1', 'L2', 'L3')


def normalize_phase(raw: Any) -> Optional[str]:
    """Map a phase label ("L1", "L2-N", "l3") to L1/L2/L3"""
    if not raw:
        return None
    s = str(raw).upper()
    for phase in PHASES:
        if phase in s:
            return phase
    return None


class MeterValuesDetector:
    """MeterReading handling and the Triplet Builder"""

    @staticmethod
    def handle_meter_values(ctx: ParseContext, obj: Any, pos: int):
        """Collect voltage points from one MeterValues message

        Samples with an unparseable or implausible timestamp are skipped
        and logged as incidents. A transactionId widens that transaction's
        span with every accepted sample time.
        """
        meter_values = obj.get('meterValue')
        if not meter_values or not isinstance(meter_values, list):
            return

        connector_id = to_int(obj.get('connectorId'), 1) or 1
        tx = obj.get('transactionId', obj.get('transactionID', obj.get('transactionid')))

        for mv in meter_values:
            if not isinstance(mv, dict):
                continue
            raw_ts = mv.get('timestamp')
            ts = parse_timestamp(raw_ts)

            if ts is None:
                ctx.add_incident(f'Invalid timestamp: "{"" if raw_ts is None else raw_ts}" near char {pos}')
                continue

            if not is_plausible(ts):
                ctx.add_incident(f'Suspicious timestamp: "{raw_ts}" -> {to_iso(ts)} near char {pos}')
                continue

            if tx:
                OcppTransactionDetector.widen_span(ctx, tx, connector_id, ts)

            sampled_values = mv.get('sampledValue')
            if not isinstance(sampled_values, list):
                continue
            for sv in sampled_values:
                point = MeterValuesDetector.voltage_point(sv, ctx.dataset, connector_id, ts)
                if point:
                    ctx.points.append(point)

    @staticmethod
    def voltage_point(sv: Any, dataset: str, connector_id: int, ts: float) -> Optional[Dict[str, Any]]:
        """Build a VoltagePoint from a sampledValue entry, or None

        Accepted only for Voltage / Voltage.L1-3 measurands with a
        resolvable phase and a numeric value below 600 V.
        """
        if not isinstance(sv, dict):
            return None
        measurand = str(sv.get('measurand') or '')
        if measurand != 'Voltage' and not VOLTAGE_MEASURAND_RE.match(measurand):
            return None

        phase = normalize_phase(sv.get('phase') or measurand.split('.')[-1])
        value = parse_voltage_value(sv.get('value'))
        if phase is None or value is None or not value < MAX_SANE_VOLTAGE:
            return None

        return {
            'dataset': dataset,
            'connector_id': connector_id,
            'phase': phase,
            'ts': ts,
            'voltage': value,
        }

    @staticmethod
    def build_triplets(points: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Fold voltage points into one row per (dataset, connector, second)

        Points are processed in time order; a phase not seen within the
        second stays None.

        Returns:
            Triplets in order of first appearance (time-ascending)
        """
        triplets: Dict[str, Dict[str, Any]] = {}

        for p in sorted(points, key=lambda x: x['ts']):
            rounded_ts = int(p['ts'] // 1000) * 1000
            key = f"{p['dataset']}|{p['connector_id']}|{rounded_ts}"

            t = triplets.get(key)
            if t is None:
                t = {
                    'id': key,
                    'ts': rounded_ts,
                    'dataset': p['dataset'],
                    'connector_id': p['connector_id'],
                    'L1': None,
                    'L2': None,
                    'L3': None,
                    'delta': 0.0,
                    'status': 'ok',
                    'session': 'idle',
                    'deviation_details': [],
                }
                triplets[key] = t
            t[p['phase']] = p['voltage']

        return list(triplets.values())
