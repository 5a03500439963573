"""CLI to exercise a running garden_alerts instance.

Usage:
  garden-alerts-probe health
  garden-alerts-probe items --refresh
  garden-alerts-probe request-verification you@example.com
  garden-alerts-probe subscribe you@example.com carrot strawberry
  garden-alerts-probe unsubscribe you@example.com
  garden-alerts-probe logs --messages 20
"""
import argparse
import asyncio
import json
import sys

import httpx
import websockets


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/health")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_items(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/refresh-items" if args.refresh else "/get-items")
    r.raise_for_status()
    data = r.json()
    print(f"Catalog: {len(data)} items", file=sys.stderr)
    print_json(data[: args.head] if args.head else data)
    return 0


def cmd_check(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/check-verification", params={"email": args.email})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_request_verification(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/request-verification", json={"email": args.email})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_subscribe(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/subscribe", json={"email": args.email, "items": args.items})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_unsubscribe(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/unsub", params={"email": args.email}, follow_redirects=False)
    if r.is_redirect:
        print(f"Unsubscribed {args.email}")
        return 0
    r.raise_for_status()
    print(r.text)
    return 0


def _logs_run(base_url: str, duration: float | None, max_messages: int | None) -> int:
    """Tail the /logs WebSocket and print each line."""
    ws_url = base_url.replace("https://", "wss://", 1).replace("http://", "ws://", 1) + "/logs"
    count = 0

    async def run() -> None:
        nonlocal count
        async with websockets.connect(ws_url) as ws:
            print(f"Tailing {ws_url} (max_messages={max_messages or '∞'})", file=sys.stderr)
            async for line in ws:
                count += 1
                print(line)
                if max_messages and count >= max_messages:
                    return

    async def run_with_timeout() -> None:
        if duration and duration > 0:
            try:
                await asyncio.wait_for(run(), timeout=duration)
            except asyncio.TimeoutError:
                print(f"Stopped after {duration}s ({count} lines)", file=sys.stderr)
        else:
            await run()

    try:
        asyncio.run(run_with_timeout())
    except KeyboardInterrupt:
        print(f"\nStopped by user ({count} lines)", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Log stream error: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exercise garden_alerts HTTP routes and the live log channel.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:3000",
        help="Service base URL (default: http://localhost:3000)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET /health")

    p = subparsers.add_parser("items", help="GET /get-items (or /refresh-items)")
    p.add_argument("--refresh", action="store_true", help="Force a catalog refresh first")
    p.add_argument("--head", type=int, default=0, help="Show only first N items (0 = all)")

    p = subparsers.add_parser("check", help="GET /check-verification")
    p.add_argument("email")

    p = subparsers.add_parser("request-verification", help="POST /request-verification")
    p.add_argument("email")

    p = subparsers.add_parser("subscribe", help="POST /subscribe")
    p.add_argument("email")
    p.add_argument("items", nargs="+", help="Item ids to watch (replaces the current set)")

    p = subparsers.add_parser("unsubscribe", help="GET /unsub")
    p.add_argument("email")

    p = subparsers.add_parser("logs", help="Tail the /logs WebSocket")
    p.add_argument(
        "--duration",
        type=float,
        default=None,
        metavar="SECS",
        help="Stop after SECS seconds (default: run until Ctrl+C)",
    )
    p.add_argument(
        "--messages",
        type=int,
        default=None,
        metavar="N",
        help="Stop after N lines (default: no limit)",
    )
    return parser


HANDLERS = {
    "health": cmd_health,
    "items": cmd_items,
    "check": cmd_check,
    "request-verification": cmd_request_verification,
    "subscribe": cmd_subscribe,
    "unsubscribe": cmd_unsubscribe,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    base_url = args.base_url.rstrip("/")

    if args.command == "logs":
        return _logs_run(base_url, args.duration, args.messages)

    handler = HANDLERS[args.command]
    try:
        with httpx.Client(base_url=base_url, timeout=args.timeout) as client:
            return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
