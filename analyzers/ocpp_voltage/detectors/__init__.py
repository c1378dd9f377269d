#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Message handlers for OCPP voltage log analysis
"""

from .firmware import FirmwareDetector
from .hardware import HardwareDetector
from .status import StatusTimeline
from .ocpp_transactions import OcppTransactionDetector
from .meter_values import MeterValuesDetector

__all__ = [
    'FirmwareDetector',
    'HardwareDetector',
    'StatusTimeline',
    'OcppTransactionDetector',
    'MeterValuesDetector',
]
