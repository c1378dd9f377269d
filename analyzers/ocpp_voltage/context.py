#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Per-file parse context shared by the message handlers
"""

from __future__ import annotations
from typing import Dict, List, Any, Optional


class ParseContext:
    """Mutable tables accumulated while scanning one log file

    One instance per file; handlers receive it explicitly and it is
    dropped once the FileData has been built.
    """

    def __init__(self, text: str, dataset: str):
        self.text = text
        self.dataset = dataset

        # Device identity (first match wins)
        self.boot_info: Dict[str, str] = {}

        # Connector / controller metadata
        self.connector_type_by_id: Dict[int, str] = {}
        self.global_connector_type: Optional[str] = None
        self.controller_version_by_connector: Dict[int, str] = {}
        self.controller_name_by_connector: Dict[int, str] = {}

        # connectorId -> [{'ts', 'status', 'error_code'}, ...]
        self.status_timeline: Dict[int, List[Dict[str, Any]]] = {}

        # transactionId -> {'tx', 'connector_id', 'start_ts', 'end_ts', 'id_tag'}
        self.tx_spans: Dict[str, Dict[str, Any]] = {}

        self.points: List[Dict[str, Any]] = []
        self.parsing_errors: List[str] = []

    def add_incident(self, message: str):
        self.parsing_errors.append(message)
