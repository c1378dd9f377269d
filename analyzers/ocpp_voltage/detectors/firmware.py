#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Device identity and firmware version detection for OCPP voltage logs
"""

from __future__ import annotations
import re
from typing import Any, Optional

from ..context import ParseContext
from ..utils import (
    deep_find_string,
    find_quoted_value,
    get_ci_any,
    looks_like_version,
    payload_of,
)


FIRMWARE_KEY_RE = re.compile(r'(firmware|fw|software|sw|controller).*(version|ver|rev)$', re.IGNORECASE)
FIRMWARE_SUFFIX_RE = re.compile(r'(firmwareVersion|fwVersion|softwareVersion|swVersion|controllerVersion)$', re.IGNORECASE)
FIRMWARE_FALLBACK_KEYS = 'firmwareVersion|fwVersion|softwareVersion|swVersion|controllerVersion|firmware|software'


class FirmwareDetector:
    """Identity (BootNotification) handling and firmware bookkeeping"""

    @staticmethod
    def maybe_set_firmware(ctx: ParseContext, candidate: Any):
        """Accept a firmware candidate if none is known yet and it looks like a version"""
        if ctx.boot_info.get('firmware_version') or candidate is None:
            return
        s = str(candidate).strip()
        if s and looks_like_version(s):
            ctx.boot_info['firmware_version'] = s

    @staticmethod
    def maybe_set_vendor_model(ctx: ParseContext, obj: Any):
        """Record charge point vendor/model; the first value seen is kept"""
        p = payload_of(obj)
        if not p:
            return
        vendor = get_ci_any(p, 'chargePointVendor', 'vendor', 'cpVendor')
        model = get_ci_any(p, 'chargePointModel', 'model', 'cpModel')
        if vendor and not ctx.boot_info.get('charge_point_vendor'):
            ctx.boot_info['charge_point_vendor'] = str(vendor).strip()
        if model and not ctx.boot_info.get('charge_point_model'):
            ctx.boot_info['charge_point_model'] = str(model).strip()

    @staticmethod
    def find_firmware_deep(payload: Any) -> Optional[str]:
        """Deep search for a firmware/software/controller version field"""
        return (deep_find_string(payload, FIRMWARE_KEY_RE)
                or deep_find_string(payload, FIRMWARE_SUFFIX_RE))

    @staticmethod
    def handle_boot_notification(ctx: ParseContext, obj: Any, pos: int):
        """Extract vendor, model and firmware from a BootNotification

        Direct keys are tried first, then a bounded deep search.

        Args:
            ctx: Parse context of the current file
            obj: JSON object found after the marker
            pos: Offset of the marker in the text
        """
        FirmwareDetector.maybe_set_vendor_model(ctx, obj)
        p = payload_of(obj)
        if not p:
            return

        fw = get_ci_any(p, 'firmwareVersion', 'firmware', 'fwVersion', 'swVersion',
                        'softwareVersion', 'controllerVersion', 'version')
        if fw:
            FirmwareDetector.maybe_set_firmware(ctx, fw)

        deep_fw = FirmwareDetector.find_firmware_deep(p)
        if deep_fw:
            FirmwareDetector.maybe_set_firmware(ctx, deep_fw)

    @staticmethod
    def apply_text_fallback(ctx: ParseContext):
        """Regex pass over the raw text when no structured firmware was found"""
        if ctx.boot_info.get('firmware_version'):
            return
        candidate = find_quoted_value(ctx.text, FIRMWARE_FALLBACK_KEYS)
        if candidate:
            FirmwareDetector.maybe_set_firmware(ctx, candidate)
