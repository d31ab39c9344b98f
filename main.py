import asyncio
import argparse
import json
import logging
import httpx
from typing import Any, Dict, List, Optional
from core.engine import Engine
from models.asset import AssetRecord, BOT
from models.evidence import MatchEvidence

KIND_LABELS = {
    "app": "App",
    "flow": "Flow",
    "bot": "Bot",
    "reportAsset": "Report asset",
}


def _serialize_evidence(e: MatchEvidence) -> Dict[str, Any]:
    connector = e.connector
    return {
        "matchedKey": e.matched_key,
        "matchedField": e.matched_field,
        "connector": {
            "typeHint": connector.type_hint,
            "apiIdentifier": connector.api_identifier,
            "displayLabel": connector.display_label,
        } if connector else None,
        "via": e.via,
    }


def describe_dependencies(asset: AssetRecord) -> List[str]:
    """One line per service, e.g. "Bot HR Helper depends on SharePoint via Flow f-12"."""
    label = f"{KIND_LABELS.get(asset.kind, asset.kind)} {asset.name or asset.id}"
    lines = []
    for service, entries in asset.matched_services.items():
        via = sorted({e.via for e in entries if e.via})
        direct = any(e.via is None for e in entries)
        if via and asset.kind == BOT:
            suffix = f" via Flow {', '.join(via)}"
            if direct:
                suffix += " and directly"
            lines.append(f"{label} depends on {service}{suffix}")
        else:
            lines.append(f"{label} depends on {service}")
    return lines


def serialize_asset(asset: AssetRecord, evidence_max: Optional[int] = None) -> Dict[str, Any]:
    if evidence_max is not None and evidence_max < 0:
        raise ValueError(f"evidence_max must not be negative, got {evidence_max}")
    return {
        "id": asset.id,
        "kind": asset.kind,
        "name": asset.name,
        "source": asset.source,
        "services": list(asset.matched_services.keys()),
        "evidence": {
            service: [_serialize_evidence(e) for e in entries[:evidence_max]]
            for service, entries in asset.matched_services.items()
        },
        "summary": describe_dependencies(asset),
    }


def main():
    parser = argparse.ArgumentParser(description="Cross-service connector dependency report")
    parser.add_argument("inventory", nargs="?", help="Inventory export (JSON file path or http(s) URL)")
    parser.add_argument("--rules-dir", type=str, help="Directory containing connectors.yaml and datasources.yaml")
    parser.add_argument("--service", type=str, nargs="+", help="Only report assets depending on these services (e.g., --service SharePoint Teams)")
    parser.add_argument("--evidence-max", type=int, default=0, help="Maximum evidence entries per service (default: 0 for unlimited)")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity level (default: INFO)")
    parser.add_argument("--list-services", action="store_true", help="List recognised services and exit")
    parser.add_argument("--headers-file", type=str, help="Path to JSON file containing HTTP headers for a remote inventory export")
    args = parser.parse_args()

    if args.evidence_max < 0:
        parser.error("--evidence-max must be 0 (unlimited) or a positive number")

    # Configure logging
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, args.log_level),
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)

    try:
        engine = Engine(rules_dir=args.rules_dir)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load pattern tables: {e}")
        return

    # List services if requested
    if args.list_services:
        print("Connector services (apps, flows, bots):")
        for pattern in engine.rules.connectors:
            print(f"  - {pattern.service}: {', '.join(pattern.keys)}")
        print("\nData-source services (reporting assets):")
        for pattern in engine.rules.datasources:
            print(f"  - {pattern.service}: {', '.join(pattern.keys)}")
        return

    if not args.inventory:
        parser.error("inventory is required unless using --list-services")

    # Load custom headers from JSON file if provided
    custom_headers = {}
    if args.headers_file:
        try:
            with open(args.headers_file, 'r') as f:
                custom_headers = json.load(f)
                if not isinstance(custom_headers, dict):
                    logger.error("Headers file must contain a JSON object (dictionary)")
                    return
                logger.info(f"Loaded {len(custom_headers)} custom headers from {args.headers_file}")
        except FileNotFoundError:
            logger.error(f"Headers file not found: {args.headers_file}")
            return
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in headers file: {e}")
            return

    known = {p.service.lower() for p in engine.rules.connectors} | {p.service.lower() for p in engine.rules.datasources}
    unknown = [s for s in args.service or [] if s.lower() not in known]
    if unknown:
        logger.warning(f"Unrecognised services in filter: {', '.join(unknown)}")

    async def run():
        try:
            results = await engine.run(args.inventory, headers=custom_headers or None, services=args.service)
        except FileNotFoundError:
            logger.error(f"Inventory file not found: {args.inventory}")
            return
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in inventory: {e}")
            return
        except ValueError as e:
            logger.error(f"Unusable inventory document: {e}")
            return
        except httpx.HTTPError as e:
            logger.error(f"Could not fetch inventory: {e}")
            return

        # Use unlimited evidence if evidence_max is 0
        evidence_max = None if args.evidence_max == 0 else args.evidence_max
        serialized = [serialize_asset(a, evidence_max) for a in results]

        logger.info("Serializing dependency report to JSON")
        print(json.dumps(serialized, indent=2))

    asyncio.run(run())

if __name__ == "__main__":
    main()
