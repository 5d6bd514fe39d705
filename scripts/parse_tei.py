"""
Parse a local TEI file and print the result.

Usage:
    python scripts/parse_tei.py edition.xml            # full document as JSON
    python scripts/parse_tei.py edition.xml --align    # verse listing
"""

import argparse
import json
import logging
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from tei_viewer_server.config import settings
from tei_viewer_server.core.logging import configure_logging
from tei_viewer_server.tei.alignment import align_document
from tei_viewer_server.tei.parser import MalformedMarkupError, parse_tei

logger = logging.getLogger("tei.cli")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Parse a TEI XML edition.")
    parser.add_argument("path", help="TEI XML file to parse")
    parser.add_argument("--align", action="store_true", help="print verses in book.line order")
    parser.add_argument(
        "--exclude-first-section",
        action="store_true",
        help="leave the first text section out of the alignment",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    with open(args.path, "rb") as fh:
        data = fh.read()

    try:
        document = parse_tei(data)
    except MalformedMarkupError as exc:
        logger.error("%s: %s", args.path, exc.diagnostic)
        return 1

    if not args.align:
        print(json.dumps(document.model_dump(by_alias=True), ensure_ascii=False, indent=2))
        return 0

    meta = document.metadata
    print(f"{meta.title} - {meta.author} ({meta.date})")
    verses = align_document(document, exclude_first_section=args.exclude_first_section)
    for verse in verses:
        print(f"\n[{verse.key}]")
        for segment in verse.segments:
            print(f"  {segment.id}: {segment.content}")

    print(f"\n{len(document.sections)} sections, {len(verses)} verses")
    return 0


if __name__ == "__main__":
    sys.exit(main())
