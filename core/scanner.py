from typing import Dict, Iterable, List, Tuple
import dataclasses
import logging
from core.classifier import classify
from models.asset import AssetRecord
from models.evidence import MatchEvidence
from models.pattern import PatternTable

logger = logging.getLogger(__name__)


def merge_evidence(
    matched: Dict[str, List[MatchEvidence]],
    evidence: MatchEvidence,
) -> bool:
    """Append evidence under its service unless an identical entry exists.

    Returns True when the evidence was added.
    """
    entries = matched.setdefault(evidence.service, [])
    if evidence in entries:
        return False
    entries.append(evidence)
    return True


def freeze_matches(matched: Dict[str, List[MatchEvidence]]) -> Dict[str, Tuple[MatchEvidence, ...]]:
    return {service: tuple(entries) for service, entries in matched.items() if entries}


def scan(asset: AssetRecord, table: PatternTable) -> AssetRecord:
    """
    Classify every connector of an asset.

    The input is left untouched; a copy carrying freshly computed
    matched_services is returned, so scanning the same asset twice gives
    the same result.
    """
    matched: Dict[str, List[MatchEvidence]] = {}

    for connector in asset.connectors:
        evidence = classify(connector, table)
        if evidence is None:
            continue
        if merge_evidence(matched, evidence):
            logger.debug(f"{asset.kind} {asset.id}: {evidence.service} via key '{evidence.matched_key}'")

    return dataclasses.replace(asset, matched_services=freeze_matches(matched))


def scan_collection(assets: Iterable[AssetRecord], table: PatternTable) -> List[AssetRecord]:
    """Scan a collection in order."""
    return [scan(asset, table) for asset in assets]
