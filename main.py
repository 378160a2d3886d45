#!/usr/bin/env python3
"""
Knowledge-Base Memory - local, re-indexable memory of a document collection.

Main entry point. Ingests directory trees into knowledge bases, searches
them, manages their lifecycle, and serves the HTTP API or the MCP server.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from common import AppConfig, format_error_chain, get_logger, setup_logging
from common.exceptions import KnowledgeBaseMemoryError
from ingestion import FileScanner
from server.wiring import Services, build_services, scan_options

# Module logger
logger = get_logger("cli")


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _progress(current: int, total: int, status: str) -> None:
    print(f"\r[{current}/{total}] {status[:60]:<60}", end="", file=sys.stderr, flush=True)
    if current == total:
        print(file=sys.stderr)


def cmd_scan(args: argparse.Namespace, config: AppConfig) -> int:
    result = FileScanner().scan(args.path, scan_options(config))
    _print_json(result.statistics.to_api())
    return 0


def cmd_ingest(args: argparse.Namespace, services: Services) -> int:
    progress = None if args.quiet else _progress
    stats = services.pipeline.ingest(args.path, args.name, progress_callback=progress)
    _print_json(stats.to_api())
    return 2 if stats.warnings else 0


def cmd_search(args: argparse.Namespace, services: Services) -> int:
    response = services.search.search(
        args.query,
        knowledge_base_name=args.knowledge_base,
        language=args.language,
        max_results=args.max_results,
    )
    if args.json:
        _print_json(response.to_api())
        return 0

    print(f"{response.total_results} results in {response.query_time:.1f} ms")
    for rank, result in enumerate(response.results, start=1):
        heading = " > ".join(result.heading_path)
        print(f"\n{rank}. [{result.score:.3f}] {result.knowledge_base_name}: "
              f"{result.relative_path or result.file_path}:{result.start_line}-{result.end_line}")
        if heading:
            print(f"   {heading}")
        preview = " ".join(result.content.split())
        print(f"   {preview[:200]}{'...' if len(preview) > 200 else ''}")
    return 0


def cmd_list(args: argparse.Namespace, services: Services) -> int:
    _print_json([kb.to_api() for kb in services.knowledge_bases.list()])
    return 0


def cmd_stats(args: argparse.Namespace, services: Services) -> int:
    _print_json(services.knowledge_bases.stats(args.name).to_api())
    return 0


def cmd_rename(args: argparse.Namespace, services: Services) -> int:
    result = services.knowledge_bases.rename(args.old_name, args.new_name)
    _print_json(result.to_api())
    return 0 if result.old_collection_dropped else 2


def cmd_delete(args: argparse.Namespace, services: Services) -> int:
    _print_json(services.knowledge_bases.delete(args.name).to_api())
    return 0


def cmd_delete_chunk_set(args: argparse.Namespace, services: Services) -> int:
    result = services.knowledge_bases.delete_chunk_set(args.name, args.timestamp)
    _print_json(result.to_api())
    return 0


def cmd_serve(args: argparse.Namespace, services: Services) -> int:
    import uvicorn

    from server import create_app

    config = services.config
    uvicorn.run(
        create_app(services),
        host=args.host or config.host,
        port=args.port or config.port,
        log_level=config.log_level.lower(),
    )
    return 0


def cmd_mcp(args: argparse.Namespace, services: Services) -> int:
    from server import create_mcp_server

    create_mcp_server(services).run(transport="stdio")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Local knowledge-base memory: ingest, search and manage document collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ingest ./docs --name handbook
  %(prog)s search "how are refunds processed" --kb handbook -n 5
  %(prog)s rename handbook company-handbook
  %(prog)s serve --port 8000
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug output"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only show warnings and errors"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this file (default: ./.env)"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("scan", help="Scan a directory and print statistics")
    p.add_argument("path", type=Path, help="Directory to scan")
    p.set_defaults(handler=cmd_scan, needs_services=False)

    p = sub.add_parser("ingest", help="Ingest a directory into a knowledge base")
    p.add_argument("path", type=Path, help="Directory to ingest")
    p.add_argument("--name", required=True, help="Knowledge base name")
    p.set_defaults(handler=cmd_ingest)

    p = sub.add_parser("search", help="Search knowledge bases")
    p.add_argument("query", help="Search query")
    p.add_argument("--kb", dest="knowledge_base", default=None, help="Only search this knowledge base")
    p.add_argument("--language", default=None, help="Document type filter (e.g. markdown, pdf)")
    p.add_argument("-n", "--max-results", type=int, default=None, help="Maximum results")
    p.add_argument("--json", action="store_true", help="Print the raw JSON response")
    p.set_defaults(handler=cmd_search)

    p = sub.add_parser("list", help="List knowledge bases")
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("stats", help="Show statistics of a knowledge base")
    p.add_argument("name", help="Knowledge base name")
    p.set_defaults(handler=cmd_stats)

    p = sub.add_parser("rename", help="Rename a knowledge base")
    p.add_argument("old_name", help="Current name")
    p.add_argument("new_name", help="New name")
    p.set_defaults(handler=cmd_rename)

    p = sub.add_parser("delete", help="Delete a knowledge base")
    p.add_argument("name", help="Knowledge base name")
    p.set_defaults(handler=cmd_delete)

    p = sub.add_parser("delete-chunk-set", help="Delete the chunks of one ingest run")
    p.add_argument("name", help="Knowledge base name")
    p.add_argument("timestamp", help="Ingestion timestamp (see 'stats')")
    p.set_defaults(handler=cmd_delete_chunk_set)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=None, help="Bind address (default: KB_HOST or 127.0.0.1)")
    p.add_argument("--port", type=int, default=None, help="Port (default: KB_PORT or 8000)")
    p.set_defaults(handler=cmd_serve)

    p = sub.add_parser("mcp", help="Run the MCP server over stdio")
    p.set_defaults(handler=cmd_mcp)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv(args.env_file)
    config = AppConfig.from_env()

    # Setup logging
    if args.verbose:
        log_level: int | str = logging.DEBUG
    elif args.quiet:
        log_level = logging.WARNING
    else:
        log_level = config.log_level
    setup_logging(
        level=log_level,
        log_file=Path(config.log_file) if config.log_file else None,
        # stdout carries the MCP protocol
        stream=sys.stderr if args.command == "mcp" else None,
    )

    try:
        if not getattr(args, "needs_services", True):
            return args.handler(args, config)
        return args.handler(args, build_services(config))
    except KnowledgeBaseMemoryError as e:
        logger.error(format_error_chain(e))
        return 1
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
