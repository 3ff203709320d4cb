#!/usr/bin/env python
"""
Export or import one audience's pricing matrix as CSV against the backend.

Usage:
    python scripts/matrix_csv.py export EVENT_ID [--audience individual] [--out prices.csv]
    python scripts/matrix_csv.py import EVENT_ID prices.csv [--audience individual] [--dry-run]
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from event_pricing.config.settings import get_settings
from event_pricing.engine import resolver
from event_pricing.services.backend_client import BackendClient, BackendError
from event_pricing.services.csv_matrix import CsvImportError
from event_pricing.services.pricing_service import PricingService

logger = logging.getLogger(__name__)


def export_matrix(service: PricingService, audience: str, out: Path = None):
    text = resolver.export_csv(service.state, audience)
    if out:
        out.write_text(text, encoding='utf-8')
        print(f"✅ Wrote {audience} prices to {out}")
    else:
        print(text, end='')


def import_matrix(service: PricingService, path: Path, dry_run: bool):
    service.apply(resolver.import_csv, path.read_text(encoding='utf-8'))

    for problem in resolver.validate_tier_chain(service.state):
        print(f"  ⚠️ {problem}")

    rules = service.saveable_rules()
    print(f"Tiers: {', '.join(service.state.tiers)}")
    print(f"Rules to save: {len(rules)}")

    if dry_run:
        for rule in rules:
            print(f"  {rule.name}: {rule.price_cents}")
        return

    service.save()
    print(f"✅ Saved {len(rules)} rules for event {service.event_id}")


def main():
    parser = argparse.ArgumentParser(description="Pricing matrix CSV export/import")
    parser.add_argument('command', choices=['export', 'import'])
    parser.add_argument('event_id')
    parser.add_argument('csv_file', nargs='?', type=Path)
    parser.add_argument('--audience', help="Audience column to export/import (default: first)")
    parser.add_argument('--out', type=Path, help="Export destination (default: stdout)")
    parser.add_argument('--dry-run', action='store_true', help="Show rules without saving")
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    service = PricingService(BackendClient(), args.event_id)

    try:
        service.load()
        if args.audience:
            if args.audience not in service.state.audiences:
                service.apply(resolver.add_audience, args.audience)
            service.apply(resolver.select_audience, args.audience)

        if args.command == 'export':
            export_matrix(service, service.state.selected_audience, args.out)
        else:
            if not args.csv_file:
                parser.error("import needs a CSV file")
            import_matrix(service, args.csv_file, args.dry_run)
    except (BackendError, CsvImportError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
