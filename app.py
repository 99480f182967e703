#!/usr/bin/env python3
"""
Run script for the Lodi package tracking system
"""

import argparse
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from lodi import create_app
from lodi.build import build_database
from lodi.buisness.core.errors import LogisticsDomainError
from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.logger import get_logger
from lodi.services.change_log import ChangeLogSubscriber
from lodi.services.console import LodiConsole
from lodi.services.local_mirror import LocalMirror
from lodi.services.progression_worker import PackageProgressionWorker

logger = get_logger("lodi.run")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Lodi Package Tracking System')
    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser('build', help='Create tables and bootstrap the initial deposits (once)')

    shell = subparsers.add_parser('shell', help='Interactive command console (default)')
    shell.add_argument('--with-worker', action='store_true',
                       help='Auto-advance new packages through their lifecycle')
    shell.add_argument('--quiet', action='store_true',
                       help='Do not log every record change')

    subparsers.add_parser('list-deposits', help='List all deposits')
    subparsers.add_parser('list-packages', help='List all packages')

    create = subparsers.add_parser('create-travel', help='Create a travel order')
    create.add_argument('source', type=int, help='Source deposit id')
    create.add_argument('destination', type=int, help='Destination deposit id')
    create.add_argument('--package-id', default=None, help='Explicit package id')

    advance = subparsers.add_parser('advance-package', help="Advance a package's state")
    advance.add_argument('package_id')
    advance.add_argument('new_state')

    update = subparsers.add_parser('update-article', help="Update an article's status")
    update.add_argument('article_id')
    update.add_argument('new_status')

    # No subcommand (possibly just shell flags) means the shell
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0].startswith('-') and argv[0] not in ('-h', '--help')):
        argv = ['shell'] + argv
    return parser.parse_args(argv)


def run_shell(app, store, with_worker=False, quiet=False):
    if not quiet:
        ChangeLogSubscriber(store.notifier).attach()

    worker = None
    if with_worker:
        worker = PackageProgressionWorker.from_app(app, store).start()

    mirror = LocalMirror(store).attach()
    try:
        LodiConsole(store, mirror).run()
    finally:
        mirror.detach()
        if worker is not None:
            worker.stop()
            worker.join(timeout=5)


def main(argv=None):
    args = parse_arguments(argv)

    app = create_app()
    store = build_database(app)

    if args.command == 'build':
        logger.info("Build completed.")
        return 0

    if args.command == 'shell':
        run_shell(app, store, with_worker=args.with_worker, quiet=args.quiet)
        return 0

    try:
        if args.command == 'list-deposits':
            for deposit in LogisticsEngine.list_deposits(store):
                print(f"ID: {deposit.id} - {deposit.name} "
                      f"(on site: {len(deposit.packages_on_site)}, outgoing: {len(deposit.outgoing_package_ids)})")
        elif args.command == 'list-packages':
            for package in LogisticsEngine.list_packages(store):
                print(f"{package.id} [{package.state}] {package.source_deposit} -> {package.destination_deposit}")
        elif args.command == 'create-travel':
            package = LogisticsEngine.create_travel_order(store, args.source, args.destination, args.package_id)
            print(f"Created travel order {package.id} from depot {args.source} to depot {args.destination}")
        elif args.command == 'advance-package':
            LogisticsEngine.advance_package_state(store, args.package_id, args.new_state)
            print(f"Advanced package {args.package_id} to state '{args.new_state}'")
        elif args.command == 'update-article':
            LogisticsEngine.update_article_status(store, args.article_id, args.new_status)
            print(f"Updated article {args.article_id} status to '{args.new_status}'")
    except LogisticsDomainError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
