#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Voltage status classification for triplets
"""

from __future__ import annotations
from typing import Dict, List, Any, Tuple


# Phase spread (V) at which a triplet counts as imbalanced
IMBALANCE_THRESHOLD = 15


def present_phases(triplet: Dict[str, Any]) -> List[float]:
    return [triplet[ph] for ph in ('L1', 'L2', 'L3') if triplet.get(ph) is not None]


def compute_delta(triplet: Dict[str, Any]) -> float:
    """Spread between the highest and lowest present phase (0 for <2 phases)"""
    vals = present_phases(triplet)
    return max(vals) - min(vals) if len(vals) > 1 else 0.0


def evaluate_status(triplet: Dict[str, Any], vmin: float, vmax: float) -> Tuple[str, List[str]]:
    """Classify a triplet against the voltage thresholds

    Precedence: over > under > imbalance > ok. Pure; safe to re-run
    whenever thresholds change.

    Args:
        triplet: Triplet dict (L1/L2/L3 and delta)
        vmin: Undervoltage threshold
        vmax: Overvoltage threshold

    Returns:
        Tuple (status, deviation_details)
    """
    vals = present_phases(triplet)
    deviations: List[str] = []
    status = 'ok'

    if not vals:
        return status, deviations

    if any(v > vmax for v in vals):
        deviations.append('High')
        status = 'over'
    if any(v < vmin for v in vals):
        deviations.append('Low')
        if status != 'over':
            status = 'under'

    delta = triplet.get('delta') or 0.0
    if delta >= IMBALANCE_THRESHOLD:
        deviations.append(f"Δ {delta:.0f}V")
        if status == 'ok':
            status = 'imbalance'

    return status, deviations
