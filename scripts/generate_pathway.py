#!/usr/bin/env python
"""
Generate a career pathway from a running advisor server.

Usage:
  python scripts/generate_pathway.py "Registered Nurse" [--url http://localhost:5000] [--json]

Ctrl-C cancels the in-flight request; no retry is attempted after that.

Exit codes:
  0 = pathway printed
  1 = generation failed after all retries
  130 = cancelled
"""

import argparse
import json
import os
import sys
import threading

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from pathway_client import (  # noqa: E402
    DEFAULT_RETRIES,
    CancelToken,
    PathwayCancelled,
    PathwayClient,
    PathwayRequestError,
)


def format_pathway(pathway: dict) -> str:
    lines = [pathway.get("title", "")]
    for number, step in enumerate(pathway.get("steps", []), start=1):
        lines.append(f"{number}. [{step.get('type', '')}] {step.get('name', '')} ({step.get('level', '')})")
        if step.get("description"):
            lines.append(f"   {step['description']}")
        if step.get("link"):
            lines.append(f"   {step['link']}")
    return "\n".join(lines)


def run_generate(client: PathwayClient, career: str, token: CancelToken, as_json: bool = False) -> int:
    outcome = {}

    def _worker():
        try:
            outcome["pathway"] = client.generate(career, cancel_token=token)
        except (PathwayCancelled, PathwayRequestError) as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_worker, daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        token.cancel()
        worker.join()

    error = outcome.get("error")
    if isinstance(error, PathwayCancelled):
        print("Cancelled.", file=sys.stderr)
        return 130
    if error is not None:
        print(f"ERROR: Could not generate a pathway for '{career}': {error.message}", file=sys.stderr)
        return 1

    pathway = outcome["pathway"]
    print(json.dumps(pathway, indent=2) if as_json else format_pathway(pathway))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("career", help="Career title, e.g. 'Registered Nurse'")
    parser.add_argument("--url", default="http://localhost:5000", help="Base URL of the advisor server")
    parser.add_argument("--retries", type=int, default=DEFAULT_RETRIES, help="Total attempts")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON body")
    args = parser.parse_args(argv)

    career = args.career.strip()
    if not career:
        parser.error("career must be a non-empty string")

    client = PathwayClient(args.url, retries=args.retries)
    return run_generate(client, career, CancelToken(), as_json=args.json)


if __name__ == "__main__":
    raise SystemExit(main())
