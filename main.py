"""CLI entrypoint for article optimization runs."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from orchestrator import check_services, run_batch, run_one
from utils.logger import setup_logger


def _dump(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Article optimizer CLI (optimizes the latest article when no command is given)",
    )
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command")

    optimize = sub.add_parser("optimize", help="Optimize one article (latest when no id is given)")
    optimize.add_argument("article_id", nargs="?", type=int, default=None)

    batch = sub.add_parser("batch", help="Optimize several articles (all when no ids are given)")
    batch.add_argument("article_ids", nargs="*", type=int)

    sub.add_parser("test", help="Check repository and LLM connectivity")

    serve = sub.add_parser("serve", help="Run the HTTP handler with uvicorn")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Bind host")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload")
    return parser


async def _run(args: argparse.Namespace) -> int:
    if args.command == "test":
        status = await check_services()
        _dump(status)
        return 0 if status["repository"] else 1

    if args.command == "batch":
        results = await run_batch(args.article_ids or None)
        _dump([result.to_dict() for result in results])
        return 0

    result = await run_one(getattr(args, "article_id", None))
    _dump(result.to_dict())
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(level=args.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("webapp.app:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
