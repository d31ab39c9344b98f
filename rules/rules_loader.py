import os
import logging
import yaml
from dataclasses import dataclass
from typing import List, Optional
from models.pattern import PatternTable, ServicePattern

logger = logging.getLogger(__name__)

DEFAULT_RULES_DIR = os.path.dirname(os.path.abspath(__file__))
CONNECTORS_FILE = "connectors.yaml"
DATASOURCES_FILE = "datasources.yaml"


@dataclass(frozen=True)
class RuleSet:
    """The two pattern tables the correlator runs with."""
    connectors: PatternTable
    datasources: PatternTable


def load_pattern_table(filepath: str, name: str = "connectors") -> PatternTable:
    """
    Loads an ordered pattern table from a YAML list of {service, keys} entries.

    Entries keep their file order. Invalid entries are skipped with a warning.
    """
    with open(filepath, "r") as f:
        rules_data = yaml.safe_load(f)

    if not rules_data:
        logger.warning(f"No patterns in {filepath}")
        return PatternTable(patterns=(), name=name)
    if not isinstance(rules_data, list):
        raise ValueError(f"{filepath} must contain a list of patterns, got {type(rules_data).__name__}")

    patterns: List[ServicePattern] = []
    for rule_data in rules_data:
        # Basic validation
        if not isinstance(rule_data, dict) or not all(k in rule_data for k in ["service", "keys"]):
            logger.warning(f"Skipping invalid pattern in {filepath}: {rule_data}")
            continue

        try:
            # A bare string is a single key
            patterns.append(ServicePattern(service=str(rule_data["service"]), keys=rule_data["keys"]))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid pattern in {filepath}: {e}")

    logger.debug(f"Loaded {len(patterns)} {name} patterns from {filepath}")
    return PatternTable(patterns=tuple(patterns), name=name)


def load_rules(rules_dir: Optional[str] = None) -> RuleSet:
    """Loads the connector and data-source tables from a rules directory."""
    rules_dir = rules_dir or DEFAULT_RULES_DIR
    return RuleSet(
        connectors=load_pattern_table(os.path.join(rules_dir, CONNECTORS_FILE), name="connectors"),
        datasources=load_pattern_table(os.path.join(rules_dir, DATASOURCES_FILE), name="datasources"),
    )


def load_default_datasource_table() -> PatternTable:
    """Reads the bundled data-source table from disk."""
    return load_pattern_table(os.path.join(DEFAULT_RULES_DIR, DATASOURCES_FILE), name="datasources")

# Example usage (for testing)
if __name__ == "__main__":
    rule_set = load_rules()
    for table in (rule_set.connectors, rule_set.datasources):
        print(f"Loaded {len(table)} {table.name} patterns.")
        for pattern in table:
            print(f"  - {pattern.service}: {', '.join(pattern.keys)}")
