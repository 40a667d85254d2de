"""Resolve one value per logical lead field from inconsistent export columns.

Each source kind (CRM export, ad-platform export, ...) gets a :class:`RuleSet`.
A rule lists exact header names in priority order and case-insensitive
patterns that are tried against every header when no exact header matched.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Pattern, Sequence, Tuple

from ..models import ParsedLeadRecord, RawRow

LOGGER = logging.getLogger(__name__)

LEAD_FIELDS: Tuple[str, ...] = (
    "name",
    "phone",
    "email",
    "company",
    "revenue_band",
    "segment",
    "notes",
    "utm_campaign",
    "utm_source",
    "utm_medium",
    "utm_content",
    "utm_term",
)

NOTES_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class FieldRule:
    """Exact header names plus fallback header patterns for one logical field."""

    exact: Tuple[str, ...] = ()
    patterns: Tuple[Pattern[str], ...] = ()
    concatenate: bool = False

    @classmethod
    def build(
        cls,
        exact: Iterable[str] = (),
        patterns: Iterable[str] = (),
        concatenate: bool = False,
    ) -> "FieldRule":
        return cls(
            exact=tuple(str(name).strip() for name in exact),
            patterns=tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns),
            concatenate=concatenate,
        )

    def matches(self, header: str) -> bool:
        return any(pattern.search(header) for pattern in self.patterns)


@dataclass(frozen=True)
class RuleSet:
    """Header vocabulary of one export tool."""

    name: str
    display_name: str
    origin: str = "outro"
    fields: Mapping[str, FieldRule] = field(default_factory=dict)


class FieldConsolidator:
    """Turns raw rows into :class:`ParsedLeadRecord` instances using a :class:`RuleSet`."""

    def __init__(self, rule_set: RuleSet) -> None:
        self._rule_set = rule_set

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    def consolidate(self, row: RawRow, row_number: Optional[int] = None) -> Optional[ParsedLeadRecord]:
        """Return the consolidated record, or ``None`` when the row is not a candidate lead."""

        values: Dict[str, Optional[str]] = {}
        for field_name, rule in self._rule_set.fields.items():
            if rule.concatenate:
                values[field_name] = _collect_all(row, rule)
            else:
                values[field_name] = _first_match(row, rule)

        name = values.get("name")
        if not name:
            LOGGER.debug("Dropping row %s: no name column resolved", row_number)
            return None
        if not values.get("phone") and not values.get("email"):
            LOGGER.debug("Dropping row %s (%s): no phone or email", row_number, name)
            return None

        return ParsedLeadRecord(
            name=name,
            **{key: values.get(key) for key in LEAD_FIELDS if key != "name"},
            row_number=row_number,
        )


def _first_match(row: RawRow, rule: FieldRule) -> Optional[str]:
    for header in rule.exact:
        text = _clean(row.get(header))
        if text:
            return text
    if not rule.patterns:
        return None
    for header, value in row.items():
        if rule.matches(header):
            text = _clean(value)
            if text:
                return text
    return None


def _collect_all(row: RawRow, rule: FieldRule) -> Optional[str]:
    exact = set(rule.exact)
    parts = []
    for header, value in row.items():
        if header in exact or rule.matches(header):
            text = _clean(value)
            if text:
                parts.append(text)
    return NOTES_SEPARATOR.join(parts) or None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_rule_set(name: str, spec: Mapping[str, Any]) -> RuleSet:
    """Create a :class:`RuleSet` from plain data (as found in configuration files).

    ``spec`` looks like ``{"display_name": ..., "origin": ..., "fields": {field:
    {"exact": [...], "patterns": [...], "concatenate": bool}}}``. Unknown field
    names raise :class:`ValueError`; invalid regular expressions raise
    :class:`re.error`.
    """

    fields_spec = spec.get("fields") or {}
    unknown = sorted(set(fields_spec) - set(LEAD_FIELDS))
    if unknown:
        raise ValueError(f"Unknown lead fields in source kind '{name}': {', '.join(unknown)}")

    fields = {
        field_name: FieldRule.build(
            exact=_as_sequence(rule.get("exact")),
            patterns=_as_sequence(rule.get("patterns")),
            concatenate=bool(rule.get("concatenate", field_name == "notes")),
        )
        for field_name, rule in fields_spec.items()
    }
    return RuleSet(
        name=name,
        display_name=str(spec.get("display_name") or name),
        origin=str(spec.get("origin") or "outro"),
        fields=fields,
    )


def _as_sequence(value: Any) -> Sequence[str]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return [str(item) for item in value]


# --- Built-in vocabularies ---

_PHONE_PATTERNS = [r"celular", r"telefone", r"phone", r"whats ?app", r"fone", r"\btel\b"]
_EMAIL_PATTERNS = [r"e-?mail"]
_COMPANY_PATTERNS = [r"empresa", r"company", r"companhia", r"organiza"]
_REVENUE_PATTERNS = [r"faturamento", r"revenue", r"receita"]
_SEGMENT_PATTERNS = [r"segmento", r"segment", r"nicho", r"ramo"]


def _utm_rule(suffix: str, *aliases: str) -> Dict[str, Any]:
    return {"exact": [f"utm_{suffix}", *aliases], "patterns": [rf"utm[_ ]?{suffix}"]}


KOMMO_RULES: Dict[str, Any] = {
    "display_name": "Kommo",
    "origin": "outro",
    "fields": {
        "name": {
            "exact": ["Nome completo", "Lead título", "Nome"],
            "patterns": [r"^nome(?!.*(empresa|companhia))", r"full ?name", r"^contato$"],
        },
        "phone": {"exact": ["Celular", "Telefone comercial", "Telefone"], "patterns": _PHONE_PATTERNS},
        "email": {"exact": ["Email comercial", "Email pessoal", "Email"], "patterns": _EMAIL_PATTERNS},
        "company": {"exact": ["Nome da empresa", "Empresa"], "patterns": _COMPANY_PATTERNS},
        "revenue_band": {"exact": ["Qual o faturamento atual?", "Faturamento"], "patterns": _REVENUE_PATTERNS},
        "segment": {"exact": ["Segmento"], "patterns": _SEGMENT_PATTERNS},
        "notes": {"exact": ["Nota", "Nota 2"], "patterns": [r"^nota", r"observa", r"coment"], "concatenate": True},
        "utm_campaign": _utm_rule("campaign"),
        "utm_source": _utm_rule("source"),
        "utm_medium": _utm_rule("medium"),
        "utm_content": _utm_rule("content"),
        "utm_term": _utm_rule("term"),
    },
}

META_ADS_RULES: Dict[str, Any] = {
    "display_name": "Meta Ads",
    "origin": "meta_ads",
    "fields": {
        "name": {
            "exact": ["full_name", "nome_completo", "nome"],
            "patterns": [r"^full[_ ]?name$", r"^nome(?!.*(empresa|companhia))", r"^name$"],
        },
        "phone": {"exact": ["phone_number", "telefone", "whatsapp", "phone"], "patterns": _PHONE_PATTERNS},
        "email": {"exact": ["email", "work_email"], "patterns": _EMAIL_PATTERNS},
        "company": {"exact": ["company_name", "nome_da_empresa", "empresa"], "patterns": _COMPANY_PATTERNS},
        "revenue_band": {"exact": [], "patterns": _REVENUE_PATTERNS},
        "segment": {"exact": [], "patterns": _SEGMENT_PATTERNS},
        "notes": {"exact": [], "patterns": [r"observa", r"coment", r"mensagem", r"message"], "concatenate": True},
        "utm_campaign": _utm_rule("campaign", "campaign_name"),
        "utm_source": _utm_rule("source", "platform"),
        "utm_medium": _utm_rule("medium", "adset_name"),
        "utm_content": _utm_rule("content", "ad_name"),
        "utm_term": _utm_rule("term", "form_name"),
    },
}


def default_rule_sets() -> Dict[str, RuleSet]:
    return {
        "kommo": build_rule_set("kommo", KOMMO_RULES),
        "meta_ads": build_rule_set("meta_ads", META_ADS_RULES),
    }


__all__ = [
    "LEAD_FIELDS",
    "NOTES_SEPARATOR",
    "FieldRule",
    "RuleSet",
    "FieldConsolidator",
    "build_rule_set",
    "default_rule_sets",
    "KOMMO_RULES",
    "META_ADS_RULES",
]
