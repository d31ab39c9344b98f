"""Reference graph propagation.

Bots call flows; a bot inherits every service its referenced flows were
matched with. Propagation is a single hop: referenced assets must already be
scanned, and their own references are not followed.
"""
from typing import Dict, Iterable, List, Sequence
import dataclasses
import logging
from core.scanner import merge_evidence, freeze_matches
from models.asset import AssetRecord, BOT
from models.evidence import MatchEvidence

logger = logging.getLogger(__name__)

CONTAINER_KINDS = {BOT}


def index_by_id(assets: Iterable[AssetRecord]) -> Dict[str, AssetRecord]:
    """Map id to asset. The first record wins if a source repeats an id."""
    index: Dict[str, AssetRecord] = {}
    for asset in assets:
        if asset.id not in index:
            index[asset.id] = asset
    return index


def propagate(containers: Sequence[AssetRecord], referenced: Sequence[AssetRecord]) -> List[AssetRecord]:
    """
    Merge the matches of referenced assets into the containers that reference them.

    Args:
        containers: Container assets (bots), already scanned for their own connectors
        referenced: Fully scanned collection the references point into (flows)

    Returns:
        New list of containers; inherited evidence carries the referenced id in `via`
    """
    index = index_by_id(referenced)
    result: List[AssetRecord] = []
    inherited_count = 0

    for container in containers:
        if container.kind not in CONTAINER_KINDS or not container.references:
            result.append(container)
            continue

        matched: Dict[str, List[MatchEvidence]] = {
            service: list(entries) for service, entries in container.matched_services.items()
        }

        for ref_id in container.references:
            target = index.get(ref_id)
            if target is None:
                # Deleted or inaccessible flow
                logger.debug(f"{container.kind} {container.id}: reference {ref_id} not found, skipping")
                continue
            for service, entries in target.matched_services.items():
                for evidence in entries:
                    if merge_evidence(matched, evidence.inherited_via(target.id)):
                        inherited_count += 1

        result.append(dataclasses.replace(container, matched_services=freeze_matches(matched)))

    logger.debug(f"Propagated {inherited_count} evidence entries into {len(result)} containers")
    return result
