import argparse
import sys
from pathlib import Path

from ielts_mock.config import CONTENT_MAX_DEPTH
from ielts_mock.models.content import SectionType
from ielts_mock.services.envelope_service import load_part_content
from ielts_mock.services.section_loader import transform_part
from ielts_mock.utils.json_utils import json_dump, multi_parse_json
from logging_setup import setup_console_logging

setup_console_logging()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="IELTS mock content tools")
    commands = parser.add_subparsers(dest="command", required=True)

    inspect = commands.add_parser("inspect", help="Print the normalized form of a raw part content blob")
    inspect.add_argument("file", type=Path, help="File holding the raw content string")
    inspect.add_argument(
        "--section",
        type=str,
        default="LISTENING",
        help="Section type: LISTENING, READING or WRITING",
    )
    inspect.add_argument(
        "--depth",
        type=int,
        default=CONTENT_MAX_DEPTH,
        help="Maximum number of JSON decoding rounds",
    )
    inspect.add_argument(
        "--view",
        choices=("user", "admin"),
        default="user",
        help="Envelope copy to prefer",
    )
    inspect.add_argument("--number", type=int, default=1, help="Part or task number")
    return parser.parse_args(argv)


def inspect_content(raw: str, section: str, depth: int, view: str, number: int = 1) -> dict[str, object]:
    section_type = SectionType(section.strip().upper())
    result = multi_parse_json(raw, depth)
    tagged = load_part_content(raw, prefer=view, max_depth=depth)
    part = transform_part(tagged, section_type, number)
    return {
        "depth": result.depth,
        "parsed": result.ok,
        "kind": tagged.kind,
        "part": part.model_dump(),
    }


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "inspect":
        raw = args.file.read_text(encoding="utf-8")
        try:
            report = inspect_content(raw, args.section, args.depth, args.view, args.number)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        print(json_dump(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
