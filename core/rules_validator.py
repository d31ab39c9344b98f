"""
Utility functions to validate pattern tables for overlaps and ordering problems.

Classification is first-declared-wins, so a key of a later service that
contains a key of an earlier service can never make the later service win.
"""

from typing import List, Dict, Tuple, Any
from collections import defaultdict
from models.pattern import PatternTable
from rules.rules_loader import load_rules


def detect_duplicate_services(table: PatternTable) -> Dict[str, List[int]]:
    """
    Detect services declared more than once.

    Returns:
        Dictionary with service names as keys and their table positions as values
    """
    positions = defaultdict(list)
    for index, pattern in enumerate(table.patterns):
        positions[pattern.service].append(index)

    return {service: idx for service, idx in positions.items() if len(idx) > 1}


def detect_key_overlaps(table: PatternTable) -> Dict[str, List[str]]:
    """
    Detect keys claimed by more than one service.

    Returns:
        Dictionary with keys as keys and list of services as values
    """
    keys_map = defaultdict(list)
    for pattern in table.patterns:
        for key in pattern.keys:
            if pattern.service not in keys_map[key]:
                keys_map[key].append(pattern.service)

    return {key: services for key, services in keys_map.items() if len(services) > 1}


def detect_shadowed_keys(table: PatternTable) -> List[Tuple[str, str, str, str]]:
    """
    Detect keys that an earlier service always wins.

    A key of a later service is shadowed when it contains a key of an earlier
    service: any descriptor holding the later key also holds the earlier one.

    Returns:
        List of (service, key, winning_service, winning_key) tuples
    """
    shadowed = []
    for later_index, later in enumerate(table.patterns):
        for key in later.keys:
            for earlier in table.patterns[:later_index]:
                if earlier.service == later.service:
                    continue
                hit = next((k for k in earlier.keys if k in key), None)
                if hit:
                    shadowed.append((later.service, key, earlier.service, hit))
                    break
    return shadowed


def detect_all_problems(table: PatternTable) -> Dict[str, Any]:
    return {
        'duplicate_services': detect_duplicate_services(table),
        'key_overlaps': detect_key_overlaps(table),
        'shadowed_keys': detect_shadowed_keys(table),
    }


def print_validation_report(table: PatternTable, verbose: bool = True) -> bool:
    """
    Print a validation report of one pattern table.

    Returns:
        True when no problems were found
    """
    problems = detect_all_problems(table)

    print("\n" + "="*70)
    print(f"PATTERN TABLE VALIDATION REPORT: {table.name}")
    print("="*70)
    print(f"\nTotal Services: {len(table)}")

    duplicates = problems['duplicate_services']
    if duplicates:
        print(f"\n⚠ DUPLICATE SERVICES: {len(duplicates)}")
        for service, positions in sorted(duplicates.items()):
            print(f"  '{service}' at positions {', '.join(str(p) for p in positions)}")
    else:
        print("\n✓ No duplicate services")

    overlaps = problems['key_overlaps']
    if overlaps:
        print(f"\n⚠ KEY OVERLAPS: {len(overlaps)}")
        for key, services in sorted(overlaps.items()):
            print(f"  '{key}' -> {', '.join(services)}")
    else:
        print("\n✓ No key overlaps")

    shadowed = problems['shadowed_keys']
    if shadowed:
        print(f"\n⚠ SHADOWED KEYS: {len(shadowed)}")
        if verbose:
            for service, key, winner, winning_key in shadowed:
                print(f"  {service} '{key}' is always won by {winner} '{winning_key}'")
    else:
        print("\n✓ No shadowed keys")

    total_keys = sum(len(p.keys) for p in table.patterns)
    print(f"\nStatistics:")
    print(f"  - Total Keys: {total_keys}")
    if len(table):
        print(f"  - Avg Keys per Service: {total_keys / len(table):.1f}")

    print("\n" + "="*70)
    return not (duplicates or overlaps or shadowed)


if __name__ == "__main__":
    import sys
    import argparse

    parser = argparse.ArgumentParser(
        description="Validate pattern tables for overlaps and ordering problems",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate the bundled tables
  python -m core.rules_validator

  # Validate tables in another directory, without per-key details
  python -m core.rules_validator --rules-dir ./my-rules --no-verbose
        """
    )
    parser.add_argument('--rules-dir', default=None, help='Directory holding connectors.yaml and datasources.yaml')
    parser.add_argument(
        '--no-verbose',
        action='store_false',
        dest='verbose',
        default=True,
        help='Do not show verbose details'
    )
    args = parser.parse_args()

    try:
        rule_set = load_rules(args.rules_dir)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    ok = True
    for table in (rule_set.connectors, rule_set.datasources):
        ok = print_validation_report(table, verbose=args.verbose) and ok
    sys.exit(0 if ok else 2)
