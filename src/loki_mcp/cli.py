#!/usr/bin/env python3
"""
Command-line client for the Loki MCP server.

Usage:
    loki-mcp-client loki_query [url] <query> [start] [end] [limit]
    loki-mcp-client calculate <operation> <x> <y>

Each invocation starts the server over stdio, makes one tool call and stops it.
"""

import argparse
import logging
import shlex
import sys
from typing import Any, Dict, List, Optional

from loki_mcp.config import LOG_FORMAT
from loki_mcp.errors import LokiMcpError
from loki_mcp.handlers import OPERATIONS, SYMBOLS
from loki_mcp.rpc import StdioRpcClient

logger = logging.getLogger(__name__)


def _number(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {text!r}")


def parse_loki_args(tokens: List[str]) -> Dict[str, Any]:
    """
    Map positional loki_query tokens to tool arguments.

    The first token is taken as the Loki URL when it starts with "http" and
    more tokens follow.
    """
    tokens = list(tokens)
    arguments: Dict[str, Any] = {}
    if len(tokens) > 1 and tokens[0].startswith("http"):
        arguments["url"] = tokens.pop(0)
    if not tokens:
        raise argparse.ArgumentTypeError("a LogQL query is required")
    if len(tokens) > 4:
        raise argparse.ArgumentTypeError(f"unexpected arguments: {' '.join(tokens[4:])}")

    arguments["query"] = tokens[0]
    if len(tokens) > 1:
        arguments["start"] = tokens[1]
    if len(tokens) > 2:
        arguments["end"] = tokens[2]
    if len(tokens) > 3:
        limit = _number(tokens[3])
        arguments["limit"] = int(limit) if limit.is_integer() else limit
    return arguments


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loki-mcp-client", description="Call a Loki MCP server tool over stdio"
    )
    parser.add_argument(
        "--server",
        type=str,
        default=None,
        help="Server command line (default: this package's server, stdio only)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    subparsers = parser.add_subparsers(dest="tool", required=True)

    loki = subparsers.add_parser("loki_query", help="Query Grafana Loki")
    loki.add_argument(
        "tokens",
        nargs=argparse.REMAINDER,
        metavar="ARG",
        help="[url] <query> [start] [end] [limit]",
    )

    calc = subparsers.add_parser("calculate", help="Basic arithmetic")
    calc.add_argument("operation", choices=sorted(OPERATIONS))
    calc.add_argument("x", type=_number)
    calc.add_argument("y", type=_number)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    if args.tool == "loki_query":
        try:
            arguments = parse_loki_args(args.tokens)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))
    else:
        arguments = {"operation": args.operation, "x": args.x, "y": args.y}

    command = shlex.split(args.server) if args.server else None
    client = StdioRpcClient(command)
    logger.info(f"Calling {args.tool} tool with {sorted(arguments)}")
    try:
        result = client.call_tool(args.tool, arguments)
    except LokiMcpError as e:
        logger.error(f"Call failed: {e}")
        return 1

    if result.isError:
        print(result.text)
        return 1

    if args.tool == "calculate":
        symbol = SYMBOLS[args.operation]
        print(f"Result: {args.x:g} {symbol} {args.y:g} = {result.text.strip()}")
    else:
        print(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
