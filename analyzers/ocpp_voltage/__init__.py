#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
OCPP voltage log analyzer

Turns free-form charge point logs into per-second, quality-annotated
voltage triplets.
"""

__version__ = "0.1.0"
