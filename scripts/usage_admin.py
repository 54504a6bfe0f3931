#!/usr/bin/env python3
"""Inspect or clear one identifier's daily call-time usage.

This script calls the admin endpoint (requires X-API-Key):
- GET  /v1/admin/usage?action=status&identifier=...&day=...
- POST /v1/admin/usage?action=clear&identifier=...&day=...

It never talks to Firestore directly; it uses the public API.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Iterable


def _http_json(method: str, url: str, *, headers: dict[str, str]) -> Any:
    req = urllib.request.Request(url=url, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=30) as resp:
            raw = resp.read().decode("utf-8")
            if not raw:
                return None
            return json.loads(raw)
    except urllib.error.HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace")
        raise RuntimeError(f"HTTP {e.code} for {method} {url}: {raw}") from e


def _admin_url(api_base: str, *, action: str, identifier: str, day: str) -> str:
    params = {"action": action, "identifier": identifier}
    if day:
        params["day"] = day
    return f"{api_base}/v1/admin/usage?{urllib.parse.urlencode(params)}"


def _resolve_api_key(explicit: str) -> str:
    api_key = explicit.strip()
    if not api_key:
        api_key = str(os.environ.get("SANTA_ADMIN_API_KEY") or "").strip()
    if not api_key:
        keys_raw = str(os.environ.get("SANTA_ADMIN_API_KEYS") or "").strip()
        api_key = keys_raw.split(",", 1)[0].strip() if keys_raw else ""
    return api_key


def main(argv: Iterable[str]) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("action", choices=["status", "clear"])
    parser.add_argument("identifier", help="Cookie user id or client IP")
    parser.add_argument("--api-base", required=True, help="Example: https://<service>.run.app")
    parser.add_argument("--day", default="", help="YYYY-MM-DD (defaults to today, UTC)")
    parser.add_argument(
        "--admin-api-key",
        default="",
        help="Defaults to SANTA_ADMIN_API_KEY or the first SANTA_ADMIN_API_KEYS entry",
    )
    args = parser.parse_args(list(argv))

    api_key = _resolve_api_key(str(args.admin_api_key))
    if not api_key:
        raise RuntimeError("Missing API key: pass --admin-api-key or set SANTA_ADMIN_API_KEY or SANTA_ADMIN_API_KEYS")

    url = _admin_url(str(args.api_base).rstrip("/"), action=args.action, identifier=args.identifier, day=args.day)
    method = "POST" if args.action == "clear" else "GET"

    out = _http_json(method, url, headers={"X-API-Key": api_key})
    print(json.dumps(out, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
