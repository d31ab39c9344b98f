"""Cross-source aggregation.

Runs the scanner over every collection, propagates flow matches into bots,
and returns the assets that depend on at least one recognised service.
"""
from typing import Dict, List, Mapping, Optional, Sequence
import logging
from core.scanner import scan_collection
from core.propagator import propagate
from models.asset import AssetRecord, KIND_ORDER, APP, FLOW, BOT, REPORT_ASSET
from models.pattern import PatternTable
from rules.rules_loader import load_default_datasource_table

logger = logging.getLogger(__name__)


class InventoryAggregator:
    """Correlates asset collections from several admin sources."""

    def __init__(self, connector_table: PatternTable, datasource_table: Optional[PatternTable] = None):
        self.connector_table = connector_table
        # Reporting assets describe data sources, not connectors
        if datasource_table is None:
            datasource_table = load_default_datasource_table()
            logger.debug(f"Using bundled data-source table ({len(datasource_table)} patterns)")
        self.datasource_table = datasource_table

    def scan_all(self, collections: Mapping[str, Sequence[AssetRecord]]) -> Dict[str, List[AssetRecord]]:
        """Scan and propagate every collection, keyed by kind."""
        unknown = set(collections) - set(KIND_ORDER)
        if unknown:
            logger.warning(f"Ignoring unknown asset kinds: {', '.join(sorted(unknown))}")

        scanned: Dict[str, List[AssetRecord]] = {}
        for kind in (APP, FLOW, BOT):
            scanned[kind] = scan_collection(collections.get(kind) or [], self.connector_table)
        scanned[REPORT_ASSET] = scan_collection(collections.get(REPORT_ASSET) or [], self.datasource_table)

        # Flows are fully scanned at this point
        scanned[BOT] = propagate(scanned[BOT], scanned[FLOW])

        for kind in KIND_ORDER:
            matched = sum(1 for a in scanned[kind] if a.has_matches())
            logger.info(f"{kind}: {matched}/{len(scanned[kind])} assets with matched services")
        return scanned

    def aggregate(self, collections: Mapping[str, Sequence[AssetRecord]]) -> List[AssetRecord]:
        scanned = self.scan_all(collections)
        result = [asset for kind in KIND_ORDER for asset in scanned[kind] if asset.has_matches()]
        if not result:
            logger.info("No assets depend on any recognised service")
        return result


def aggregate(
    collections: Mapping[str, Sequence[AssetRecord]],
    table: PatternTable,
    datasource_table: Optional[PatternTable] = None,
) -> List[AssetRecord]:
    """
    Correlate all collections and return the assets with at least one match.

    Args:
        collections: Mapping of kind ("app", "flow", "bot", "reportAsset") to assets
        table: Connector pattern table, used for apps, flows and bots
        datasource_table: Data-source pattern table for reporting assets
            (defaults to the built-in one, read from rules/datasources.yaml
            when omitted)

    Returns:
        Matched assets ordered app, flow, bot, reportAsset, keeping input order per kind
    """
    return InventoryAggregator(table, datasource_table).aggregate(collections)
