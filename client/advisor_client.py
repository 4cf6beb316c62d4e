"""Command-line client for manual testing of the advisor API."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Any

import httpx

DEFAULT_URL = "http://127.0.0.1:8000"

logger = logging.getLogger("advisor_client")


def send_chat(client: httpx.Client, message: str, session_id: str | None = None) -> httpx.Response:
    payload: dict[str, Any] = {"message": message}
    if session_id:
        payload["sessionId"] = session_id
    return client.post("/api/chat", json=payload)


def send_search(
    client: httpx.Client,
    query: str,
    *,
    category: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> httpx.Response:
    params: dict[str, Any] = {"q": query}
    if category:
        params["category"] = category
    if limit is not None:
        params["limit"] = limit
    if offset is not None:
        params["offset"] = offset
    return client.get("/api/living-atlas/search", params=params)


def run_client(args: argparse.Namespace, transport: httpx.BaseTransport | None = None) -> int:
    """Issue one request and print the JSON reply; returns a process exit code."""

    start = time.perf_counter()
    with httpx.Client(base_url=args.url, timeout=args.timeout, transport=transport) as client:
        if args.command == "chat":
            response = send_chat(client, args.message, args.session)
        else:
            response = send_search(
                client, args.query, category=args.category, limit=args.limit, offset=args.offset
            )

    elapsed = time.perf_counter() - start
    body = response.json()
    print(json.dumps(body, indent=2))

    if response.is_error:
        logger.error(
            "Request failed with %d %s (request id %s)",
            response.status_code,
            body.get("error", {}).get("code"),
            body.get("requestId"),
        )
        return 1

    logger.info("Received %d response in %.2fs", response.status_code, elapsed)
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Test client for the map app advisor API.")
    parser.add_argument("--url", default=DEFAULT_URL, help="API base URL (default: %(default)s)")
    parser.add_argument(
        "--timeout", type=float, default=30.0, help="Seconds to wait for a response."
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    commands = parser.add_subparsers(dest="command", required=True)

    chat = commands.add_parser("chat", help="Ask for app recommendations.")
    chat.add_argument("message", help="What you want to build.")
    chat.add_argument("--session", help="Optional session UUID.")

    search = commands.add_parser("search", help="Search Living Atlas datasets.")
    search.add_argument("query", help="Search terms (at least 3 characters).")
    search.add_argument("--category")
    search.add_argument("--limit", type=int)
    search.add_argument("--offset", type=int)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        code = run_client(args)
    except httpx.HTTPError as exc:
        logger.error("Could not reach %s: %s", args.url, exc)
        code = 2
    sys.exit(code)


if __name__ == "__main__":  # pragma: no cover
    main()
