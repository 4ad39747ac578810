"""
命令行入口

    python -m sgad_docstore [certificates|nosql|all] [--strict] [--env-file PATH]

退出码：0 全部成功；1 存在单集合失败或种子被拒；2 存储不可达
"""

import argparse
import asyncio
import json
import sys

from sgad_docstore.config import load_config
from sgad_docstore.container import connect, initialize_store
from sgad_docstore.core import StoreConnectionError, get_logger, setup_logging
from sgad_docstore.services.database import STORES

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_UNREACHABLE = 2

logger = get_logger("sgad_docstore")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sgad_docstore",
        description="Initialize SGAD document stores (collections, indexes, seed data)",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default="all",
        choices=[*STORES, "all"],
        help="store to initialize (default: all)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="fail a collection whose existing validator disagrees with the declared schema",
    )
    parser.add_argument("--env-file", default=None, help="path to a .env file")
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.env_file)
    setup_logging(
        log_dir=config.logging.log_dir,
        log_level=config.logging.level,
        file=config.logging.to_file,
    )
    strict = config.initializer.strict if args.strict is None else args.strict

    db_names = {
        "certificates": config.database.certificates_db_name,
        "nosql": config.database.nosql_db_name,
    }
    targets = list(STORES) if args.target == "all" else [args.target]

    try:
        client = await connect(config.database)
    except StoreConnectionError as e:
        logger.error(f"✗ {e.message}")
        return EXIT_UNREACHABLE

    summaries = []
    try:
        for target in targets:
            summary = await initialize_store(
                client, STORES[target], strict=strict, db_name=db_names[target]
            )
            summaries.append(summary)
    except StoreConnectionError as e:
        logger.error(f"✗ {e.message}")
        return EXIT_UNREACHABLE
    finally:
        client.close()

    print(json.dumps([s.to_dict() for s in summaries], indent=2, ensure_ascii=False))
    return EXIT_OK if all(s.ok for s in summaries) else EXIT_FAILURES


def run() -> None:
    """console script 入口"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
