#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Low-level helpers for OCPP voltage log parsing

- Bracket-aware JSON extraction from free-form text
- Tolerant (case-insensitive / deep) field lookup
- Timestamp normalization and plausibility window
- Version and connector-type heuristics
"""

from __future__ import annotations
import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Pattern

from dateutil import parser as date_parser


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# 2015-01-01T00:00:00Z in epoch milliseconds
MIN_REASONABLE_TS = 1420070400000
MAX_FUTURE_MS = 7 * 24 * 60 * 60 * 1000

DEEP_SEARCH_MAX_DEPTH = 7

# Two defaults differing in year, month and day
_DATE_PROBE_A = datetime(2000, 1, 1)
_DATE_PROBE_B = datetime(2001, 2, 2)

_VERSION_SHAPE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._\-]{1,60}$')
_CONNECTOR_TOKEN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9/._\-]{1,20}$')
_LEADING_FLOAT = re.compile(r'\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)')


def extract_json_from(text: str, start: int) -> Optional[Any]:
    """Parse the first balanced {...} object at or after `start`

    Braces inside string literals (including escaped quotes) are ignored.

    Args:
        text: Raw log text
        start: Offset to start searching for an opening brace

    Returns:
        The decoded object, or None if there is no '{', the braces never
        balance, or the balanced span is not valid JSON
    """
    i = text.find('{', start)
    if i < 0:
        return None

    depth = 0
    in_str = False
    esc = False

    for j in range(i, len(text)):
        ch = text[j]
        if in_str:
            if esc:
                esc = False
            elif ch == '\\':
                esc = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(text[i:j + 1])
                except (ValueError, RecursionError):
                    return None
    return None


def payload_of(obj: Any) -> Optional[dict]:
    """Resolve the content object of a message

    Different message families nest their content under `payload`,
    `data` or `params`; otherwise the message itself is the payload.
    """
    if not isinstance(obj, dict):
        return None
    for key in ('payload', 'data', 'params'):
        inner = obj.get(key)
        if isinstance(inner, dict):
            return inner
    return obj


def get_ci(obj: Any, key: str) -> Any:
    """Case-insensitive lookup on an object's own keys"""
    if not isinstance(obj, dict):
        return None
    if key in obj:
        return obj[key]
    lk = key.lower()
    for k, v in obj.items():
        if isinstance(k, str) and k.lower() == lk:
            return v
    return None


def get_ci_any(obj: Any, *keys: str) -> Any:
    """First non-null value among several case-insensitive keys"""
    for key in keys:
        value = get_ci(obj, key)
        if value is not None:
            return value
    return None


def deep_find_string(root: Any, key_re: Pattern, value_re: Optional[Pattern] = None,
                     max_depth: int = DEEP_SEARCH_MAX_DEPTH) -> Optional[str]:
    """Find the first string/number value whose key matches `key_re`

    Walks nested objects and arrays with an explicit stack. Containers
    deeper than `max_depth` and containers already visited are skipped.

    Args:
        root: Decoded JSON tree
        key_re: Compiled pattern tested (search) against each key
        value_re: Optional compiled pattern the stringified value must match
        max_depth: Maximum container nesting depth to inspect

    Returns:
        Stripped string value, or None
    """
    seen = set()
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > max_depth or not isinstance(node, (dict, list)):
            continue
        if id(node) in seen:
            continue
        seen.add(id(node))

        if isinstance(node, list):
            for child in node:
                stack.append((child, depth + 1))
            continue

        for key, child in node.items():
            if key_re.search(str(key)) and is_scalar(child):
                s = str(child).strip()
                if s and (value_re is None or value_re.search(s)):
                    return s
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))
    return None


def is_scalar(value: Any) -> bool:
    """True for strings and real numbers (booleans excluded)"""
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float))


def parse_timestamp(value: Any) -> Optional[float]:
    """Normalize a timestamp to epoch milliseconds

    Numbers are taken as epoch milliseconds as-is. Strings go through
    dateutil; naive results are interpreted as UTC. Strings without a
    full calendar date ("10:00", "March 5") are rejected rather than
    completed from today.

    Returns:
        Epoch milliseconds, or None if empty, partial or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    s = value.strip()
    try:
        dt = date_parser.parse(s, default=_DATE_PROBE_A)
        # Date parts filled from the default differ between the two parses
        if dt.date() != date_parser.parse(s, default=_DATE_PROBE_B).date():
            return None
    except (ValueError, OverflowError, TypeError):
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - EPOCH
    return delta.days * 86400000 + delta.seconds * 1000 + delta.microseconds // 1000


def read_any_timestamp(obj: Any) -> Optional[float]:
    """Read a message timestamp under any of its common spellings"""
    if not isinstance(obj, dict):
        return None
    for key in ('timestamp', 'timeStamp', 'ts', 'time', 'datetime', 'dateTime'):
        if obj.get(key) is not None:
            return parse_timestamp(obj[key])
    return None


def now_ms() -> int:
    return int((datetime.now(timezone.utc) - EPOCH).total_seconds() * 1000)


def is_plausible(ts: float) -> bool:
    """Check a timestamp against [2015-01-01, now + 7 days]"""
    return MIN_REASONABLE_TS <= ts <= now_ms() + MAX_FUTURE_MS


def to_iso(ts: float) -> str:
    """Format epoch milliseconds as ISO-8601 UTC with milliseconds"""
    try:
        dt = EPOCH + timedelta(milliseconds=ts)
    except (OverflowError, ValueError):
        return str(ts)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def looks_like_version(s: str) -> bool:
    """Version-ish token: alphanumeric start, 2-61 chars of [A-Za-z0-9._-], a digit"""
    return bool(_VERSION_SHAPE.match(s)) and any(c.isdigit() for c in s)


def normalize_connector_type(raw: Any) -> Optional[str]:
    """Canonicalize a free-text connector standard name

    Returns:
        One of CCS, CCS2, CHAdeMO, Type2, GB/T, NACS, the raw token if it
        is a short alphanumeric identifier, or None
    """
    s = '' if raw is None else str(raw).strip()
    if not s:
        return None

    u = re.sub(r'\s+', '', s.upper())
    if 'CCS' in u:
        return 'CCS2' if 'CCS2' in u else 'CCS'
    if 'CHADEMO' in u:
        return 'CHAdeMO'
    if 'TYPE2' in u or 'IEC62196T2' in u or 'IEC62196-2' in u:
        return 'Type2'
    if 'GBT' in u or 'GB/T' in u:
        return 'GB/T'
    if 'NACS' in u or 'TESLA' in u:
        return 'NACS'
    if _CONNECTOR_TOKEN.match(s) and re.search(r'[A-Za-z]', s):
        return s
    return None


def parse_voltage_value(raw: Any) -> Optional[float]:
    """Parse a sampled value, accepting a decimal comma

    Like a lenient float parser, trailing units are ignored ("230,4V").
    """
    if raw is None or isinstance(raw, bool):
        return None
    match = _LEADING_FLOAT.match(str(raw).replace(',', '.', 1))
    if not match:
        return None
    return float(match.group(1))


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Coerce an id-like value (number or numeric string) to int"""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if number != number or number in (float('inf'), float('-inf')):
        return default
    return int(number)


def find_quoted_value(text: str, key_pattern: str) -> Optional[str]:
    """Last-resort raw-text lookup of a "key": "value" pair

    Args:
        text: Raw log text
        key_pattern: Regex alternation of acceptable key names

    Returns:
        The first matching value (1-80 chars), stripped, or None
    """
    pattern = r'["\'](' + key_pattern + r')["\']\s*:\s*["\']([^"\']{1,80})["\']'
    match = re.search(pattern, text, re.IGNORECASE)
    return match.group(2).strip() if match else None
