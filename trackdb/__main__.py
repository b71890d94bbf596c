import os
import sys
import sqlite3
import logging
import logging.config
import argparse

from os import getenv
from typing import List, Optional
from dotenv import load_dotenv
from yaml import safe_load

from trackdb.db_manager import CatalogError
from trackdb.generator import CatalogGenerator
from trackdb.models import RunResult

DEFAULT_DB_LOCATION = "db"
DEFAULT_LOGGING_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logging.conf.yaml')
LEVEL_TAGS = {
    logging.WARNING: "WARN",
    logging.ERROR: "ERR ",
    logging.CRITICAL: "CRIT",
}
FILE_HELP = "Accepted audio files are flac, mp3 and m4a files. m3u files describe playlists."

logger = logging.getLogger('cli')
result_logger = logging.getLogger('result')


def setup_logging(config_path: str, quiet: bool = False):
    for level, tag in LEVEL_TAGS.items():
        logging.addLevelName(level, tag)

    try:
        with open(config_path, 'r') as fp:
            config = safe_load(fp)
            logging.config.dictConfig(config)
    except OSError:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
        result_logger.setLevel(logging.INFO)
        logging.info("Logging config couldn't be read, defaulting to basicConfig")

    if quiet:
        logging.getLogger().setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('-o', '--output', metavar='OUTPUT_FILE',
                        help="Catalog location (default: $TRACKDB_PATH or ./db)")
    common.add_argument('-p', '--prune', action='store_true', help="Run prune after removing files")
    common.add_argument('-q', '--quiet', action='store_true', help="Only show warnings and errors")
    common.add_argument('-a', '--arduino', action='store_true',
                        help="Store paths relative to the current directory, in the form used on the player")
    common.add_argument('files', nargs='*', metavar='FILE')

    parser = argparse.ArgumentParser(prog='trackdb', description="Build a catalog of audio files and playlists")
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.add_parser('init', parents=[common], help="Create a catalog and add files to it", epilog=FILE_HELP)
    subparsers.add_parser('add', parents=[common], help="Add files to an existing catalog", epilog=FILE_HELP)
    subparsers.add_parser('remove', parents=[common], help="Remove files from the catalog", epilog=FILE_HELP)
    subparsers.add_parser('prune', parents=[common], help="Delete artists, albums and genres without songs")
    return parser


def run(command: str, db_path: str, files: List[str], prune: bool, portable: bool) -> RunResult:
    if command == 'init':
        return CatalogGenerator.create(db_path, portable=portable).process_files(files)

    generator = CatalogGenerator.open(db_path, portable=portable)
    if command == 'add':
        return generator.process_files(files)
    if command == 'remove':
        result = generator.remove_files(files)
        if prune:
            result += generator.prune()
        return result
    return generator.prune()


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(getenv('TRACKDB_LOGGING_CONFIG', DEFAULT_LOGGING_CONFIG), quiet=getattr(args, 'quiet', False))

    if args.command is None:
        parser.print_help()
        return 2

    if args.prune and args.command != 'remove':
        logger.warning("Pruning flag given, but we are not removing anything. Ignoring")

    if args.command == 'prune':
        if args.files:
            logger.warning("Files given while pruning are ignored. Use \"remove\" to delete files")
    elif not args.files:
        logger.error("No audio files provided.")
        return 1

    db_path = args.output or getenv('TRACKDB_PATH', DEFAULT_DB_LOCATION)

    try:
        result = run(args.command, db_path, args.files, prune=args.prune, portable=args.arduino)
    except CatalogError as e:
        logger.error(str(e))
        return 1
    except (sqlite3.Error, OSError) as e:
        logger.critical(f"Catalog at {db_path} failed: {e}")
        return 1

    summary = result.summary()
    if summary:
        result_logger.info(f"Result: {summary}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
