"""Command-line entry point: C headers in, registry JSON out."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .api import dump_ir, dump_schema, merge_registries
from .errors import CRegistryError
from .ident import InternTable
from .registry import MergePolicy
from .run import run
from .run_types import PipelineConfig
from . import constants

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cregistry", description="Build an API registry from C headers"
    )
    parser.add_argument("files", nargs="*", help="C header files to process")
    parser.add_argument(
        "--name",
        "-n",
        default=constants.DEFAULT_REGISTRY_NAME,
        help=f"Registry name (default: {constants.DEFAULT_REGISTRY_NAME})",
    )
    parser.add_argument(
        "--merge-policy",
        "-m",
        default=MergePolicy.REJECT.value,
        choices=[policy.value for policy in MergePolicy],
        help="How to resolve conflicting entities across files (default: reject)",
    )
    parser.add_argument(
        "--keep-going",
        "-k",
        action="store_true",
        help="Skip declarations that fail to map instead of aborting",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=constants.DEFAULT_JSON_INDENT,
        help=f"JSON indentation (default: {constants.DEFAULT_JSON_INDENT})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--stats", action="store_true", help="Print pipeline statistics to stderr"
    )
    parser.add_argument(
        "--ir-only", action="store_true", help="Only print the named IR declarations"
    )
    parser.add_argument(
        "--schema", action="store_true", help="Print the registry JSON schema and exit"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.schema:
        print(dump_schema(args.indent))
        return 0

    if not args.files:
        parser.error("at least one header file is required")

    table = InternTable()
    policy = MergePolicy(args.merge_policy)
    registries = []
    try:
        for path in args.files:
            source = Path(path).read_text(encoding="utf-8")
            config = PipelineConfig(
                registry_name=args.name,
                file_name=path,
                strict=not args.keep_going,
            )
            if args.ir_only:
                print(f"═══ IR: {path} ═══")
                print(dump_ir(source, config, table))
                continue
            registry, stats = run(source, config, table)
            if args.stats:
                print(stats.report(), file=sys.stderr)
            registries.append(registry)
        if args.ir_only:
            return 0
        merged = merge_registries(registries, args.name, policy)
    except CRegistryError as exc:
        logger.error("%s", exc)
        return 1

    print(merged.to_json(args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
