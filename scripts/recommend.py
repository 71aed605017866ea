#!/usr/bin/env python3
"""
Recommendation batch script

Runs the engine against a JSON seed file with in-memory stores.

Usage:
    python scripts/recommend.py generate --user-id 1 --limit 5
    python scripts/recommend.py refresh-expired
    python scripts/recommend.py stats --user-id 1
"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from recommender.core.config import settings
from recommender.core.errors import RecommenderError
from recommender.core.logging import setup_logging
from recommender.services.recommendation_service import build_service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Personal shopping recommendations')
    parser.add_argument('--seed-file', type=str, default=None,
                        help=f'Path to the JSON seed file (default: {settings.seed_path})')

    subparsers = parser.add_subparsers(dest='command', required=True)

    generate = subparsers.add_parser('generate', help='Generate recommendations for a user')
    generate.add_argument('--user-id', type=int, required=True, help='User identifier')
    generate.add_argument('--limit', type=int, default=settings.default_limit,
                          help='Maximum number of recommendations')

    subparsers.add_parser('refresh-expired', help='Refresh users with expired recommendations')

    stats = subparsers.add_parser('stats', help='Show recommendation and engagement stats')
    stats.add_argument('--user-id', type=int, required=True, help='User identifier')

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        service = build_service(Path(args.seed_file) if args.seed_file else None)

        if args.command == 'generate':
            results = service.generate(args.user_id, args.limit)
            output = [r.model_dump(mode='json') for r in results]
        elif args.command == 'refresh-expired':
            output = {'refreshed_users': service.refresh_expired()}
        else:
            output = {
                'recommendations': service.stats(args.user_id).model_dump(mode='json'),
                'engagement': service.engagement_summary(args.user_id).model_dump(mode='json'),
            }
    except RecommenderError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
