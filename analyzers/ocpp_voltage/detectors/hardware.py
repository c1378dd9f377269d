#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Connector and controller hardware detection for OCPP voltage logs

Sources, all best-effort:
- GetConfiguration key/value dumps (firmware keys, connector type keys)
- DataTransfer "hardwareInfo" blobs: "conn1=Chademo;charger0=EVCC-DC-02/C32K/..."
- DataTransfer payloads carrying connector arrays or maps
"""

from __future__ import annotations
import re
from typing import Any

from ..context import ParseContext
from ..utils import (
    find_quoted_value,
    get_ci,
    get_ci_any,
    looks_like_version,
    normalize_connector_type,
    payload_of,
    to_int,
)
from .firmware import FirmwareDetector


CONNECTOR_FALLBACK_KEYS = 'connectorType|plugType|connectorStandard|socketType|portType|outletType|connectorFormat'


class HardwareDetector:
    """ConfigurationDump / VendorTransfer handling"""

    @staticmethod
    def set_connector_type_from_key(ctx: ParseContext, key: Any, value: Any):
        """Assign a normalized connector type by key

        Keys ending in a number, or naming a connector/port/socket/outlet
        followed by a number (ConnectorType_1, PortType1, ...), target that
        connector id; any other key sets the station-wide type.
        """
        v0 = '' if value is None else str(value).strip()
        k = '' if key is None else str(key).strip()
        if not k or not v0:
            return

        v = normalize_connector_type(v0)
        if not v:
            return

        match = re.search(r'(\d+)\s*$', k)
        if match:
            ctx.connector_type_by_id[int(match.group(1))] = v
            return
        match = re.search(r'(connector|port|socket|outlet)\D*(\d+)', k, re.IGNORECASE)
        if match:
            ctx.connector_type_by_id[int(match.group(2))] = v
            return
        ctx.global_connector_type = v

    @staticmethod
    def parse_hardware_info(ctx: ParseContext, data: str):
        """Parse a ';'-delimited key=value hardware description

        connN populates the connector type of connector N; chargerK carries
        "NAME/VERSION/..." for the controller of connector K+1.
        """
        kv = {}
        for part in str(data or '').split(';'):
            part = part.strip()
            i = part.find('=')
            if i <= 0:
                continue
            k = part[:i].strip()
            v = part[i + 1:].strip()
            if k and v:
                kv[k] = v

        for k, v in kv.items():
            match = re.fullmatch(r'conn(\d+)', k, re.IGNORECASE)
            if match:
                connector_type = normalize_connector_type(v)
                if connector_type:
                    ctx.connector_type_by_id[int(match.group(1))] = connector_type

        for k, v in kv.items():
            match = re.fullmatch(r'charger(\d+)', k, re.IGNORECASE)
            if not match:
                continue
            connector_id = int(match.group(1)) + 1

            segments = [s.strip() for s in v.split('/') if s.strip()]
            name = segments[0] if segments else None
            version = segments[1] if len(segments) > 1 else None
            if name:
                ctx.controller_name_by_connector[connector_id] = name
            if version and looks_like_version(version):
                ctx.controller_version_by_connector[connector_id] = version

    @staticmethod
    def handle_get_configuration(ctx: ParseContext, obj: Any, pos: int):
        """Scan a configuration dump for firmware and connector type keys"""
        p = payload_of(obj)
        if not p:
            return
        entries = get_ci_any(p, 'configurationKey', 'configurationKeys', 'configuration',
                             'keyValues', 'conf', 'result')
        if not isinstance(entries, list):
            return

        for entry in entries:
            key = get_ci_any(entry, 'key', 'name')
            value = get_ci_any(entry, 'value', 'val', 'currentValue')
            if not key or value is None:
                continue
            k = str(key)
            kl = k.lower()
            vs = str(value).strip()

            if not ctx.boot_info.get('firmware_version'):
                is_version_key = (
                    'firmware' in kl or 'fw' in kl
                    or ('software' in kl and 'version' in kl)
                    or ('sw' in kl and 'version' in kl)
                    or ('controller' in kl and 'version' in kl)
                    or ('app' in kl and 'version' in kl)
                )
                if is_version_key:
                    FirmwareDetector.maybe_set_firmware(ctx, vs)

            key_hints_connector = any(h in kl for h in ('connector', 'evse', 'port', 'socket', 'outlet', 'plug'))
            key_hints_type = any(h in kl for h in ('type', 'standard', 'format', 'kind', 'plug'))
            value_looks_type = normalize_connector_type(vs) is not None

            if key_hints_connector and (key_hints_type or value_looks_type):
                HardwareDetector.set_connector_type_from_key(ctx, k, vs)

    @staticmethod
    def handle_data_transfer(ctx: ParseContext, obj: Any, pos: int):
        """Extract identity, hardwareInfo and connector layouts from a DataTransfer"""
        FirmwareDetector.maybe_set_vendor_model(ctx, obj)
        p = payload_of(obj)
        if not p:
            return

        msg_id = get_ci_any(p, 'messageId', 'messageID', 'msgId', 'msgID')
        if msg_id and re.search(r'hardwareinfo', str(msg_id), re.IGNORECASE):
            data_field = get_ci_any(p, 'data', 'payload', 'value')
            if isinstance(data_field, str):
                HardwareDetector.parse_hardware_info(ctx, data_field)
            elif isinstance(data_field, dict):
                inner = get_ci(data_field, 'data')
                if isinstance(inner, str):
                    HardwareDetector.parse_hardware_info(ctx, inner)

        fw = FirmwareDetector.find_firmware_deep(p)
        if fw:
            FirmwareDetector.maybe_set_firmware(ctx, fw)

        connectors = get_ci_any(p, 'connectors', 'ports', 'evse', 'outlets')
        if isinstance(connectors, list):
            for c in connectors:
                cid = to_int(get_ci_any(c, 'id', 'connectorId', 'connector', 'portId'))
                ctype = get_ci_any(c, 'type', 'connectorType', 'standard', 'plugType')
                if cid is not None and ctype:
                    HardwareDetector.set_connector_type_from_key(ctx, str(cid), ctype)
        elif isinstance(connectors, dict):
            for k, v in connectors.items():
                HardwareDetector.set_connector_type_from_key(ctx, k, v)

        ct = get_ci_any(p, 'connectorType', 'connectorStandard', 'plugType')
        if ct:
            HardwareDetector.set_connector_type_from_key(ctx, 'connectorType', ct)

    @staticmethod
    def apply_text_fallback(ctx: ParseContext):
        """Regex pass over the raw text when no connector type was found"""
        if ctx.global_connector_type or ctx.connector_type_by_id:
            return
        candidate = find_quoted_value(ctx.text, CONNECTOR_FALLBACK_KEYS)
        connector_type = normalize_connector_type(candidate) if candidate else None
        if connector_type:
            ctx.global_connector_type = connector_type

    @staticmethod
    def connector_type_for(ctx: ParseContext, connector_id: int):
        return (ctx.connector_type_by_id.get(connector_id)
                or ctx.connector_type_by_id.get(0)
                or ctx.global_connector_type)
