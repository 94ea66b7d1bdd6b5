#!/usr/bin/env python3
"""Script to export the star history of a user or repository to CSV, JSON and SVG.

Usage: export_star_history.py USER [REPO]
"""

import logging
import sys
import os
import csv
import json
from datetime import datetime
from typing import List

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from star_trends.config import Settings, build_service, configure_logging
from star_trends.domain.models import TimeSeriesPoint

logger = logging.getLogger(__name__)


def dump_to_csv(series: List[TimeSeriesPoint], output_file: str):
    """Dump series to CSV."""
    with open(output_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(["timestamp", "cumulative_count"])
        for point in series:
            writer.writerow([point.timestamp.isoformat(), point.cumulative_count])

    logger.info(f"Dumped {len(series)} points to {output_file}")


def dump_to_json(series: List[TimeSeriesPoint], output_file: str):
    """Dump series to JSON."""
    data = [
        {"timestamp": point.timestamp.isoformat(), "cumulative_count": point.cumulative_count}
        for point in series
    ]
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info(f"Dumped {len(data)} points to {output_file}")


def main(argv: List[str]):
    """Export star history to CSV, JSON and SVG."""
    settings = Settings.from_env()
    configure_logging(settings)

    if not argv or len(argv) > 2:
        logger.error("Usage: export_star_history.py USER [REPO]")
        return 2
    user = argv[0]
    repo = argv[1] if len(argv) > 1 else None

    try:
        output_dir = os.getenv("OUTPUT_DIR", "artifacts")
        os.makedirs(output_dir, exist_ok=True)

        service = build_service(settings)
        series = service.star_series(user, repo)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        stem = f"stars_{user}_{repo}" if repo else f"stars_{user}"
        csv_file = os.path.join(output_dir, f"{stem}_{timestamp}.csv")
        json_file = os.path.join(output_dir, f"{stem}_{timestamp}.json")
        svg_file = os.path.join(output_dir, f"{stem}_{timestamp}.svg")

        dump_to_csv(series, csv_file)
        dump_to_json(series, json_file)
        with open(svg_file, 'wb') as f:
            f.write(service.renderer.render(series))

        logger.info(f"Star history export completed. Files: {csv_file}, {json_file}, {svg_file}")
        return 0
    except Exception as e:
        logger.error(f"Star history export failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
