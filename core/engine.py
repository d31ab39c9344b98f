import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from core.aggregator import InventoryAggregator
from core.inventory_loader import load_inventory
from fetch.http_client import fetch_inventory
from models.asset import AssetRecord
from rules.rules_loader import RuleSet, load_rules


def filter_by_services(assets: Iterable[AssetRecord], services: Iterable[str]) -> List[AssetRecord]:
    """Keep assets matched with at least one of the given services (case-insensitive)."""
    wanted = {s.lower() for s in services}
    return [a for a in assets if any(s.lower() in wanted for s in a.matched_services)]


class Engine:
    def __init__(self, rules_dir: Optional[str] = None, rule_set: Optional[RuleSet] = None):
        """Initialize the engine with pattern tables.

        Args:
            rules_dir: Directory with connectors.yaml and datasources.yaml
                (defaults to the bundled rules)
            rule_set: Already built tables; takes precedence over rules_dir
        """
        self.logger = logging.getLogger(__name__)
        self.rules = rule_set if rule_set is not None else load_rules(rules_dir)
        self.logger.info(
            f"Loaded {len(self.rules.connectors)} connector patterns, "
            f"{len(self.rules.datasources)} data-source patterns"
        )
        self.aggregator = InventoryAggregator(self.rules.connectors, self.rules.datasources)

    async def load(self, location: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> Dict[str, List[AssetRecord]]:
        """Fetch an inventory export and map it to asset collections."""
        self.logger.debug(f"Loading inventory from {location}")
        document = await fetch_inventory(location, headers=headers, **kwargs)
        collections = load_inventory(document)
        total = sum(len(v) for v in collections.values())
        self.logger.info(f"Loaded {total} assets from {location}")
        return collections

    def correlate(
        self,
        collections: Mapping[str, Sequence[AssetRecord]],
        services: Optional[Iterable[str]] = None,
    ) -> List[AssetRecord]:
        """Run the correlation and optionally keep only some services."""
        results = self.aggregator.aggregate(collections)
        self.logger.info(f"Correlation complete, {len(results)} assets with dependencies")
        if services:
            results = filter_by_services(results, services)
            self.logger.info(f"After service filtering: {len(results)} assets")
        return results

    async def run(self, location: str, headers: Optional[Dict[str, str]] = None, services: Optional[Iterable[str]] = None) -> List[AssetRecord]:
        collections = await self.load(location, headers=headers)
        return self.correlate(collections, services=services)
