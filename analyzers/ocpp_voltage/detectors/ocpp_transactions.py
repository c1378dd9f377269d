#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
OCPP transaction span tracking for voltage logs

A span is the time interval of one transactionId. Evidence comes from:
- StartTransaction / StopTransaction messages
- MeterValues carrying a transactionId (meter data alone marks a session)

Every observation widens the same span: start = min, end = max.
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional

from ..context import ParseContext
from ..utils import read_any_timestamp, to_int


# Reporting jitter tolerated at both session boundaries
SESSION_GRACE_MS = 60 * 1000
# Stop scanning spans that started this long before the triplet
SESSION_LOOKBACK_MS = 10 * 60 * 1000


class OcppTransactionDetector:
    """Transaction span accumulation and session matching"""

    @staticmethod
    def widen_span(ctx: ParseContext, tx: Any, connector_id: int, ts: float, id_tag: Optional[str] = None):
        """Create or widen the span of a transaction

        connector_id and id_tag follow the most recent observation.
        """
        key = str(tx)
        span = ctx.tx_spans.get(key)
        if span is None:
            span = {'tx': key, 'connector_id': connector_id, 'start_ts': ts, 'end_ts': ts, 'id_tag': None}
            ctx.tx_spans[key] = span
        span['start_ts'] = min(span['start_ts'], ts)
        span['end_ts'] = max(span['end_ts'], ts)
        span['connector_id'] = connector_id
        if id_tag:
            span['id_tag'] = str(id_tag)

    @staticmethod
    def _handle_transaction_message(ctx: ParseContext, obj: Any):
        tx = obj.get('transactionId', obj.get('transactionID'))
        connector_id = to_int(obj.get('connectorId'), 1)
        ts = read_any_timestamp(obj)
        if not tx or ts is None:
            return
        OcppTransactionDetector.widen_span(ctx, tx, connector_id, ts, obj.get('idTag'))

    @staticmethod
    def handle_start_transaction(ctx: ParseContext, obj: Any, pos: int):
        """SessionStart: opens (or widens) a span, learns the idTag"""
        OcppTransactionDetector._handle_transaction_message(ctx, obj)

    @staticmethod
    def handle_stop_transaction(ctx: ParseContext, obj: Any, pos: int):
        """SessionStop: closes (or widens) a span"""
        OcppTransactionDetector._handle_transaction_message(ctx, obj)

    @staticmethod
    def spans_by_connector(ctx: ParseContext) -> Dict[int, List[Dict[str, Any]]]:
        """Group spans per connector, each group sorted by start time"""
        grouped: Dict[int, List[Dict[str, Any]]] = {}
        for span in ctx.tx_spans.values():
            grouped.setdefault(span['connector_id'], []).append(span)
        for spans in grouped.values():
            spans.sort(key=lambda s: s['start_ts'])
        return grouped

    @staticmethod
    def match_session(spans: List[Dict[str, Any]], ts: float) -> Optional[Dict[str, Any]]:
        """Find the span active at `ts`, latest span first

        A span matches when ts + 60s >= start and ts <= end + 60s. The
        scan stops at the first span starting more than 10 minutes before
        ts, so a long overlapping session hidden behind it is not seen.

        Args:
            spans: One connector's spans, sorted by start_ts
            ts: Triplet timestamp (ms)

        Returns:
            Matching span dict or None
        """
        for span in reversed(spans):
            if ts + SESSION_GRACE_MS >= span['start_ts'] and ts <= span['end_ts'] + SESSION_GRACE_MS:
                return span
            if span['start_ts'] < ts - SESSION_LOOKBACK_MS:
                break
        return None
