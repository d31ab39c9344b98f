"""Connector descriptor classification.

Maps one ConnectorRef onto a canonical service name using an ordered
PatternTable. The first pattern (in table order) with a key found in any of
the descriptor's fields wins, so tables must list specific services before
generic ones (e.g. "Office 365 Users" before "Outlook").
"""
from typing import Optional
from models.asset import ConnectorRef
from models.evidence import MatchEvidence
from models.pattern import PatternTable


def classify(connector: Optional[ConnectorRef], table: PatternTable) -> Optional[MatchEvidence]:
    """
    Classify a connector descriptor against a pattern table.

    Args:
        connector: Descriptor to classify; None and empty descriptors never match
        table: Ordered pattern table

    Returns:
        MatchEvidence for the first matching pattern, or None for no match
    """
    if connector is None or connector.is_empty():
        return None

    fields = [(name, value.lower()) for name, value in connector.fields() if value]

    for pattern in table.patterns:
        for key in pattern.keys:
            for field_name, value in fields:
                if key in value:
                    return MatchEvidence(
                        service=pattern.service,
                        matched_key=key,
                        matched_field=field_name,
                        connector=connector,
                    )
    return None
