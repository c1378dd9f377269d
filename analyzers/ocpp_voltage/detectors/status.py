#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Connector status timeline for OCPP voltage logs
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional

from ..context import ParseContext
from ..utils import is_plausible, payload_of, read_any_timestamp, to_int, to_iso


class StatusTimeline:
    """StatusNotification events per connector, looked up by time"""

    @staticmethod
    def handle_status_notification(ctx: ParseContext, obj: Any, pos: int):
        """Append a (ts, status, error_code) event for the connector

        Events with an implausible timestamp are dropped entirely and
        recorded as a suspicious-timestamp incident.
        """
        body = payload_of(obj) or {}
        connector_id = to_int(obj.get('connectorId', body.get('connectorId')), 0)

        ts = read_any_timestamp(obj)
        if ts is None:
            ts = read_any_timestamp(obj.get('payload'))
        if ts is None:
            return

        if not is_plausible(ts):
            raw = obj.get('timestamp', obj.get('ts', ''))
            ctx.add_incident(
                f'Suspicious timestamp (StatusNotification): "{raw}" -> {to_iso(ts)} near char {pos}'
            )
            return

        status = obj.get('status', body.get('status'))
        error_code = obj.get('errorCode', body.get('errorCode'))
        status_info = obj.get('statusInfo', body.get('statusInfo'))
        if isinstance(status_info, dict):
            status = status or status_info.get('status')
            error_code = error_code or status_info.get('errorCode')

        ctx.status_timeline.setdefault(connector_id, []).append({
            'ts': ts,
            'status': str(status) if status else None,
            'error_code': str(error_code) if error_code else None,
        })

    @staticmethod
    def sort_timelines(ctx: ParseContext):
        """Sort each connector timeline once, after scanning"""
        for events in ctx.status_timeline.values():
            events.sort(key=lambda e: e['ts'])

    @staticmethod
    def timeline_for(timelines: Dict[int, List[Dict[str, Any]]], connector_id: int) -> List[Dict[str, Any]]:
        """Connector timeline, falling back to the station-wide connector 0"""
        return timelines.get(connector_id) or timelines.get(0) or []

    @staticmethod
    def find_status_at(events: List[Dict[str, Any]], ts: float) -> Optional[Dict[str, Any]]:
        """Latest event at or before `ts` (events sorted ascending)"""
        lo, hi, best = 0, len(events) - 1, -1
        while lo <= hi:
            mid = (lo + hi) // 2
            if events[mid]['ts'] <= ts:
                best = mid
                lo = mid + 1
            else:
                hi = mid - 1
        return events[best] if best >= 0 else None
