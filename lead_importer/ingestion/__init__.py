"""Decoding, column consolidation and report export for lead import files."""
from __future__ import annotations

from .consolidation import FieldConsolidator, FieldRule, RuleSet, build_rule_set, default_rule_sets
from .decoder import DELIMITED, SPREADSHEET, detect_kind, iter_rows

__all__ = [
    "DELIMITED",
    "SPREADSHEET",
    "FieldConsolidator",
    "FieldRule",
    "RuleSet",
    "build_rule_set",
    "default_rule_sets",
    "detect_kind",
    "iter_rows",
    "exporters",
]
