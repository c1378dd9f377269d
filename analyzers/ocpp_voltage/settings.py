#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Analysis settings: voltage thresholds and display timezone
"""

from __future__ import annotations
from typing import Dict, Any, Optional

from dateutil import tz


# 230 V +/- 10%
DEFAULT_VMIN = 207.0
DEFAULT_VMAX = 253.0
DEFAULT_TIMEZONE = 'Europe/Kyiv'


def build_settings(vmin: Optional[float] = None, vmax: Optional[float] = None,
                   timezone: Optional[str] = None) -> Dict[str, Any]:
    """Build a settings dict, filling defaults and validating values

    Args:
        vmin: Undervoltage threshold (V)
        vmax: Overvoltage threshold (V)
        timezone: IANA timezone name used for display

    Returns:
        Dict with 'vmin', 'vmax', 'timezone'

    Raises:
        ValueError: On non-positive or inverted thresholds, or an unknown timezone
    """
    vmin = float(DEFAULT_VMIN if vmin is None else vmin)
    vmax = float(DEFAULT_VMAX if vmax is None else vmax)
    timezone = timezone or DEFAULT_TIMEZONE

    if vmin <= 0 or vmax <= 0:
        raise ValueError(f"Thresholds must be positive (vmin={vmin}, vmax={vmax})")
    if vmin >= vmax:
        raise ValueError(f"vmin must be below vmax (vmin={vmin}, vmax={vmax})")
    if tz.gettz(timezone) is None:
        raise ValueError(f"Unknown timezone: {timezone}")

    return {'vmin': vmin, 'vmax': vmax, 'timezone': timezone}


def display_tz(settings: Dict[str, Any]):
    """tzinfo for the configured display timezone (UTC if unresolvable)"""
    return tz.gettz(settings.get('timezone') or DEFAULT_TIMEZONE) or tz.UTC
