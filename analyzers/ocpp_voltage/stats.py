#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Aggregate statistics and risk model across parsed files
"""

from __future__ import annotations
from typing import Dict, List, Any

from .evaluator import evaluate_status


# Absolute floor, independent of the configurable vmin
DEEP_DIP_VOLTAGE = 190
HIGH_RISK_MAX_DELTA = 30
HIGH_RISK_INCIDENTS = 100
MEDIUM_RISK_VIOLATIONS = 50
MEDIUM_RISK_INCIDENTS = 10

SUSPICIOUS_PREFIX = 'Suspicious timestamp'
MAX_SUSPICIOUS_SAMPLES = 5
MAX_LISTED_INCIDENTS = 50


def _enabled(files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [f for f in files if f.get('enabled', True)]


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def aggregate_triplets(files: List[Dict[str, Any]], vmin: float, vmax: float) -> List[Dict[str, Any]]:
    """Triplets of all enabled files, re-evaluated and sorted by time

    Returns copies; the files' own triplets are left untouched.
    """
    data = []
    for f in _enabled(files):
        for t in f.get('triplets', []):
            status, deviations = evaluate_status(t, vmin, vmax)
            row = dict(t)
            row['status'] = status
            row['deviation_details'] = deviations
            data.append(row)
    data.sort(key=lambda x: x['ts'])
    return data


def count_incidents(files: List[Dict[str, Any]]) -> int:
    return sum(len(f.get('parsing_errors') or []) for f in _enabled(files))


def classify_risk(cnt_deep_dip: int, max_delta: float, violations: int, incidents: int) -> str:
    """Risk level, first matching rule wins"""
    if cnt_deep_dip > 0 or max_delta > HIGH_RISK_MAX_DELTA or incidents > HIGH_RISK_INCIDENTS:
        return 'high'
    if violations > MEDIUM_RISK_VIOLATIONS or incidents > MEDIUM_RISK_INCIDENTS:
        return 'medium'
    return 'low'


def _init_phase_stats() -> Dict[str, Any]:
    return {'min': 0.0, 'max': 0.0, 'avg': 0.0, 'under_count': 0, 'over_count': 0, 'zero_count': 0}


def compute_stats(data: List[Dict[str, Any]], incident_count: int, vmin: float, vmax: float) -> Dict[str, Any]:
    """Reduce evaluated, time-sorted triplets into AnalysisStats

    Args:
        data: Output of aggregate_triplets
        incident_count: Parsing incidents of the enabled files
        vmin: Undervoltage threshold (per-phase counts)
        vmax: Overvoltage threshold (per-phase counts)

    Returns:
        AnalysisStats dict
    """
    stats = {
        'total_points': len(data),
        'start_time': data[0]['ts'] if data else None,
        'end_time': data[-1]['ts'] if data else None,
        'duration_hours': 0.0,
        'cnt_under': 0,
        'cnt_over': 0,
        'cnt_imbalance': 0,
        'cnt_deep_dip': 0,
        'cnt_invalid_dates': incident_count,
        'max_delta': 0.0,
        'risk_level': 'low',
        'phases': {ph: _init_phase_stats() for ph in ('L1', 'L2', 'L3')},
    }

    if data:
        stats['duration_hours'] = (stats['end_time'] - stats['start_time']) / (1000 * 60 * 60)

    sums = {'L1': 0.0, 'L2': 0.0, 'L3': 0.0}
    counts = {'L1': 0, 'L2': 0, 'L3': 0}

    for t in data:
        if t['status'] == 'under':
            stats['cnt_under'] += 1
        elif t['status'] == 'over':
            stats['cnt_over'] += 1
        elif t['status'] == 'imbalance':
            stats['cnt_imbalance'] += 1
        if t.get('delta', 0) > stats['max_delta']:
            stats['max_delta'] = t['delta']

        deep_dip = False
        for ph in ('L1', 'L2', 'L3'):
            val = t.get(ph)
            if val is None:
                continue
            ps = stats['phases'][ph]
            if counts[ph] == 0:
                ps['min'] = ps['max'] = val
            else:
                ps['min'] = min(ps['min'], val)
                ps['max'] = max(ps['max'], val)
            if val < vmin:
                ps['under_count'] += 1
            if val > vmax:
                ps['over_count'] += 1
            if val == 0:
                ps['zero_count'] += 1
            if val < DEEP_DIP_VOLTAGE:
                deep_dip = True
            sums[ph] += val
            counts[ph] += 1
        if deep_dip:
            stats['cnt_deep_dip'] += 1

    for ph in ('L1', 'L2', 'L3'):
        if counts[ph]:
            stats['phases'][ph]['avg'] = sums[ph] / counts[ph]

    violations = stats['cnt_under'] + stats['cnt_over'] + stats['cnt_imbalance']
    stats['risk_level'] = classify_risk(stats['cnt_deep_dip'], stats['max_delta'], violations, incident_count)
    return stats


def compute_analysis_stats(files: List[Dict[str, Any]], vmin: float, vmax: float) -> Dict[str, Any]:
    """AnalysisStats for the enabled files under the given thresholds"""
    data = aggregate_triplets(files, vmin, vmax)
    return compute_stats(data, count_incidents(files), vmin, vmax)


def summarize_incidents(files: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Incident overview of the enabled files

    Returns:
        Dict with 'errors' (all), 'suspicious_count', 'suspicious_samples'
        (first distinct few), 'unique' (first distinct incidents) and
        'truncated'
    """
    errors = [e for f in _enabled(files) for e in (f.get('parsing_errors') or [])]
    suspicious = [e for e in errors if str(e).startswith(SUSPICIOUS_PREFIX)]
    unique = _unique(errors)
    return {
        'errors': errors,
        'suspicious_count': len(suspicious),
        'suspicious_samples': _unique(suspicious)[:MAX_SUSPICIOUS_SAMPLES],
        'unique': unique[:MAX_LISTED_INCIDENTS],
        'truncated': len(unique) > MAX_LISTED_INCIDENTS,
    }
