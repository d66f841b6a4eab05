#!/usr/bin/env python3
"""
cidchat CLI.

Every command has a short name and standard aliases:

    NAME            ALIASES             WHAT IT DOES
    ----            -------             ----------------------------------
    dial            start, serve        Start the cidchat server
    ring            status, ping        Ping a running instance
    ls              list                List conversations archived by a running instance
    pull            fetch, load         Fetch an archived conversation by CID
    flash           info, config        Show configuration at a glance
"""

import argparse
import asyncio
import sys

from cidchat import __version__

BANNER = f"  cidchat v{__version__} — chat with a node, archive by CID"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_dial(args):
    """Start the cidchat server."""
    import uvicorn
    from cidchat.config import get_config

    cfg = get_config()
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]

    print(BANNER)
    print(f"  Dialing up on {host}:{port}")
    print(f"  Node:    {cfg['backend']['url']}")
    print(f"  Storage: {cfg['storage'].get('backend', 'http')}")
    print()

    uvicorn.run(
        "cidchat.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_ring(args):
    """Ping a running cidchat instance."""
    import httpx

    url = args.url.rstrip("/")
    try:
        resp = httpx.get(f"{url}/api/health", timeout=5)
        if resp.status_code == 200:
            health = resp.json()
            print(f"  ☎  Ring ring... {url} is UP (v{health.get('version', '?')})")
            print(f"  📦 Storage backend: {health.get('storage_backend') or '?'}")
            print(f"  📼 Archived this run: {health.get('conversations', 0)}")
            print(f"  🧠 Model: {health.get('model') or 'not fetched yet'}")
        else:
            print(f"  ✗  No answer — got HTTP {resp.status_code}")
            return 1
    except httpx.ConnectError:
        print(f"  ✗  Dead line — nothing at {url}")
        return 1
    except httpx.HTTPError as e:
        print(f"  ✗  Error: {e}")
        return 1
    return 0


def cmd_ls(args):
    """List conversations archived by a running instance."""
    import httpx

    url = args.url.rstrip("/")
    try:
        resp = httpx.get(f"{url}/api/conversations", timeout=10)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        print(f"  ✗  Could not list conversations at {url}: {e}")
        return 1

    records = resp.json().get("conversations", [])
    if not records:
        print("  No conversations archived yet.")
        return 0

    for rec in records:
        print(f"  {rec['content_id']}")
        print(f"      {rec['timestamp']} | {rec['model']} | {rec['file_size_bytes']} bytes")
        print(f"      {rec['preview']}")
    return 0


def cmd_pull(args):
    """Fetch an archived conversation straight from storage."""
    from cidchat.config import get_config
    from cidchat.errors import CidchatError
    from cidchat.main import make_object_backend
    from cidchat.retriever import ConversationRetriever
    from cidchat.storage.content_store import ContentStore

    cfg = get_config()
    storage_cfg = cfg.get("storage", {})
    store = ContentStore(make_object_backend(storage_cfg), storage_cfg.get("public_url_template", ""))

    if args.raw:
        # Exactly the archived bytes, unknown fields included
        try:
            data = asyncio.run(store.retrieve(args.cid))
        except CidchatError as e:
            print(f"  ✗  {e.message}", file=sys.stderr)
            return 1
        if not data:
            print(f"  ✗  No conversation stored under CID {args.cid}", file=sys.stderr)
            return 1
        print(data.decode("utf-8", errors="replace"))
        return 0

    try:
        conversation = asyncio.run(ConversationRetriever(store).load(args.cid))
    except CidchatError as e:
        print(f"  ✗  {e.message}", file=sys.stderr)
        return 1

    print(f"  Conversation {conversation.id} ({conversation.timestamp})")
    print(f"  {store.public_url(args.cid)}")
    meta = conversation.metadata
    if meta:
        print(f"  Model: {meta.model} | Tokens: {meta.total_tokens} | Size: {meta.file_size_bytes} bytes")
    print("  " + "─" * 56)
    for turn in conversation.messages:
        print(f"\n  [{turn.role.upper()}] {turn.content}")
    return 0


def cmd_flash(args):
    """Show configuration at a glance."""
    from cidchat.config import get_config

    cfg = get_config()
    storage_cfg = cfg.get("storage", {})

    print(BANNER)
    print()
    print("  Configuration")
    print(f"  ├─ Server:   {cfg['server']['host']}:{cfg['server']['port']}")
    print(f"  ├─ Node:     {cfg['backend'].get('url') or '(unset)'}")
    print(f"  ├─ API key:  {'set' if cfg['backend'].get('api_key') else '(unset)'}")
    print(f"  ├─ Storage:  {storage_cfg.get('backend', 'http')}")
    print(f"  ├─ Upload:   {storage_cfg.get('upload_url') or '(unset)'}")
    print(f"  ├─ Gateway:  {storage_cfg.get('gateway_url') or '(default)'}")
    print(f"  ├─ Space:    {storage_cfg.get('space_name', '')} {storage_cfg.get('space_identifier', '')}")
    print(f"  └─ Logging:  {cfg.get('logging', {}).get('level', 'INFO')}")
    return 0


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cidchat",
        description="cidchat — chat with an LLM node, archive conversations by CID.",
        epilog="Run 'cidchat <command> --help' for command-specific options.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"cidchat {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def setup_dial(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["dial", "start", "serve"], "Start the cidchat server", cmd_dial, setup_dial)

    def setup_url(p):
        p.add_argument("--url", "-u", default="http://localhost:3000", help="cidchat URL")

    _add_command(sub, ["ring", "status", "ping"], "Ping a running cidchat instance", cmd_ring, setup_url)
    _add_command(sub, ["ls", "list"], "List conversations archived by a running instance", cmd_ls, setup_url)

    def setup_pull(p):
        p.add_argument("cid", help="Content identifier of the archived conversation")
        p.add_argument("--raw", action="store_true", help="Print the stored JSON instead of a transcript")

    _add_command(sub, ["pull", "fetch", "load"], "Fetch an archived conversation by CID", cmd_pull, setup_pull)
    _add_command(sub, ["flash", "info", "config"], "Show configuration at a glance", cmd_flash)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        print(BANNER)
        parser.print_help()
        return 0

    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
