"""Command line entry point: ``isa-crate``."""
import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from isa_crate import annotation_table, patterns
from isa_crate.arcjson import ArcJsonDecoder, ArcJsonEncoder
from isa_crate.errors import DecodeError
from isa_crate.isajson import ISAJsonDecoder, ISAJsonEncoder
from isa_crate.rocrate import ROCrateDecoder, ROCrateEncoder
from isa_crate.sparse_table import rows_from_text, rows_to_text

logger = logging.getLogger(__name__)

CRATE_FILE_NAME = "ro-crate-metadata.json"

SAMPLE_FORMATS = ("isajson", "rocrate")
TABLE_FORMATS = ("arcjson", "isatab")


def describe_header(header: str) -> dict:
    classification = patterns.classify(header)
    if classification is None:
        return {"header": header, "kind": None, "fields": {}}
    return {"header": header, "kind": type(classification).__name__, "fields": asdict(classification)}


def run_headers(args: argparse.Namespace) -> int:
    rows = rows_from_text(Path(args.file).read_text(encoding=args.encoding))
    if not rows:
        raise SystemExit(f"No header row found in {args.file}")
    descriptions = [describe_header(header) for header in rows[0]]
    if args.json:
        print(json.dumps(descriptions, indent=2, ensure_ascii=False))
        return 0
    for index, description in enumerate(descriptions):
        kind = description["kind"] or "-"
        fields = ", ".join(f"{key}={value!r}" for key, value in description["fields"].items())
        if fields:
            kind = f"{kind}({fields})"
        print(f"{index}\t{description['header']}\t{kind}")
    return 0


def convert_sample(text: str, source: str, target: str, spaces: int) -> str:
    if source == "isajson":
        sample = ISAJsonDecoder().sample_from_string(text)
    else:
        sample = ROCrateDecoder().sample_from_string(text)
    if target == "isajson":
        return ISAJsonEncoder(spaces=spaces).sample_to_string(sample)
    return ROCrateEncoder(spaces=spaces).sample_to_string(sample)


def convert_table(text: str, source: str, target: str, spaces: int, name: Optional[str]) -> str:
    if source == "arcjson":
        table = ArcJsonDecoder().table_from_string(text)
    else:
        table = annotation_table.from_rows(rows_from_text(text), name)
    if target == "arcjson":
        return ArcJsonEncoder(spaces=spaces).table_to_string(table)
    return rows_to_text(annotation_table.to_rows(table))


def run_convert(args: argparse.Namespace) -> int:
    formats = SAMPLE_FORMATS if args.kind == "sample" else TABLE_FORMATS
    for option, value in (("--from", args.source), ("--to", args.target)):
        if value not in formats:
            raise SystemExit(f"{option} must be one of {', '.join(formats)} for --kind {args.kind}")
    text = Path(args.input).read_text(encoding=args.encoding)
    if args.kind == "sample":
        result = convert_sample(text, args.source, args.target, args.spaces)
    else:
        result = convert_table(text, args.source, args.target, args.spaces, args.name)
    if args.output:
        Path(args.output).write_text(result, encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(result if result.endswith("\n") else result + "\n")
    return 0


def run_batch(args: argparse.Namespace) -> int:
    input_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    sample_files = sorted(input_dir.rglob(args.pattern))
    if not sample_files:
        raise SystemExit(f"No {args.pattern} files found under {input_dir}")

    try:
        from tqdm import tqdm
    except ImportError as exc:
        raise SystemExit("tqdm is required for progress output. Install it via `python3 -m pip install tqdm`.") from exc

    decoder = ISAJsonDecoder()
    encoder = ROCrateEncoder()
    progress = tqdm(
        sample_files,
        desc=f"Generating {len(sample_files)} RO-Crates",
        unit="sample",
        disable=not sys.stderr.isatty(),
    )

    subcrates: List[Tuple[Path, dict]] = []
    for sample_path in progress:
        sample = decoder.sample_from_string(sample_path.read_text(encoding=args.encoding))
        crate = encoder.build_crate([sample], name=sample.name)
        crate_dir = output_dir / sample_path.stem
        crate_dir.mkdir(parents=True, exist_ok=True)
        output_path = crate_dir / CRATE_FILE_NAME
        output_path.write_text(json.dumps(crate, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote %s", output_path)
        subcrates.append((crate_dir, crate))

    if args.ttl_out:
        ttl_path = Path(args.ttl_out)
        write_merged_ttl(ttl_path, subcrates)
        logger.info("Wrote merged Turtle to %s", ttl_path)
    return 0


def write_merged_ttl(output_path: Path, subcrates: Sequence[Tuple[Path, dict]]) -> None:
    """Parse every crate into one rdflib graph and serialize it as Turtle."""
    try:
        from rdflib import Graph
    except ImportError as exc:
        raise SystemExit("rdflib is required to write Turtle output. Install it via `python3 -m pip install rdflib`.") from exc

    graph = Graph()
    for crate_dir, crate in subcrates:
        crate_base = crate_dir.resolve().as_uri() + "/"
        graph.parse(data=json.dumps(crate), format="json-ld", publicID=crate_base)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    graph.serialize(destination=str(output_path), format="turtle")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="isa-crate",
        description="Convert ISA metadata between ISA-JSON, RO-Crate, ARC JSON and ISA-Tab.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug details")
    parser.add_argument(
        "--encoding",
        default="utf-8",
        help="Text encoding for input files (default: utf-8)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    headers = subparsers.add_parser("headers", help="Classify the header row of a tab-separated annotation table")
    headers.add_argument("file", help="Path to a tab-separated annotation table")
    headers.add_argument("--json", action="store_true", help="Print the classification as JSON")
    headers.set_defaults(func=run_headers)

    convert = subparsers.add_parser("convert", help="Convert a single document between dialects")
    convert.add_argument("input", help="Path to the input document")
    convert.add_argument("--kind", choices=("sample", "table"), default="sample", help="Document kind (default: sample)")
    convert.add_argument("--from", dest="source", default="isajson", help="Input dialect (default: isajson)")
    convert.add_argument("--to", dest="target", default="rocrate", help="Output dialect (default: rocrate)")
    convert.add_argument("-o", "--output", default=None, help="Output path (defaults to stdout)")
    convert.add_argument("--spaces", type=int, default=2, help="JSON indentation, 0 for compact (default: 2)")
    convert.add_argument("--name", default=None, help="Table name when reading ISA-Tab")
    convert.set_defaults(func=run_convert)

    batch = subparsers.add_parser("batch", help="Convert every ISA-JSON sample under a directory into RO-Crates")
    batch.add_argument("--input-dir", default="samples", help="Directory to scan (default: samples)")
    batch.add_argument("--output-dir", default="ro-crates", help="Directory to write RO-Crates (default: ro-crates)")
    batch.add_argument("--pattern", default="*.json", help="Glob for sample files (default: *.json)")
    batch.add_argument(
        "--ttl-out",
        default=None,
        help="Write merged Turtle output for all generated crates (requires rdflib)",
    )
    batch.set_defaults(func=run_batch)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except DecodeError as exc:
        raise SystemExit(f"Could not decode input: {exc}") from exc


if __name__ == "__main__":
    sys.exit(main())
