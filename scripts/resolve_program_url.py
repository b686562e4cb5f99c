"""
Resolve program names to MDC program pages using the local tables.

Usage:
    python scripts/resolve_program_url.py "Associate in Arts in Biology"
    python scripts/resolve_program_url.py "A.S. in Nursing" "Bachelor of Science in Data Analytics"
    python scripts/resolve_program_url.py --data-path path/to/data "Computer Science"
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from data_loader import load_program_catalog  # noqa: E402
from program_links import DEFAULT_BASE_URL, ProgramUrlResolver  # noqa: E402
from settings import DEFAULT_DATA_PATH  # noqa: E402


def resolve_names(names: list[str], data_path: str, base_url: str = DEFAULT_BASE_URL) -> list[tuple[str, str]]:
    resolver = ProgramUrlResolver.from_catalog(load_program_catalog(data_path), base_url=base_url)
    return [(name, resolver.resolve(name)) for name in names]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Resolve program names to MDC program URLs.")
    parser.add_argument("names", nargs="+", help="Program names as written in a pathway step")
    parser.add_argument("--data-path", default=DEFAULT_DATA_PATH, help="Directory holding program_urls.csv")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Site root for generated links")
    args = parser.parse_args(argv)

    try:
        results = resolve_names(args.names, args.data_path, args.base_url)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] Could not load program tables: {exc}", file=sys.stderr)
        return 2

    for name, url in results:
        print(f"{name}\t{url}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
