"""High-level API + CLI for the document authenticity engine."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from docforensics.errors import DecodeError, EmptyImageError
from docforensics.utils import save_json
from pipeline import EngineSettings, load_settings, summarize
from pipeline.settings import CONFIG_PATH
from scoring.profiles import PROFILES
from scoring.synthesis import pending_result

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tif", ".tiff"}

logger = logging.getLogger("docforensics.cli")


class DocumentAuthenticityAPI:
    """High-level orchestration API usable from CLI or notebooks."""

    def __init__(self, settings: Optional[EngineSettings] = None, profile: Optional[str] = None):
        self.settings = settings or load_settings()
        self.profile = profile or self.settings.profile
        self.analyzer = self.settings.build_analyzer(self.profile)

    def analyze_file(self, path: Path, report: bool = False) -> dict[str, Any]:
        try:
            result = self.analyzer.analyze_file(path)
        except (DecodeError, EmptyImageError) as exc:
            logger.warning("Cannot analyse %s: %s", path, exc)
            result = pending_result(reason=str(exc), request_id=path.name, profile=self.profile)
        return result.to_report() if report else result.to_dict()

    def analyze_directory(self, image_dir: Path, out_dir: Path) -> dict[str, Any]:
        paths = find_images(image_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        outcomes = []
        with self.settings.build_scheduler(self.profile) as scheduler:
            items = ((p.name, p.read_bytes()) for p in paths)
            for outcome in scheduler.run_batch(items):
                record = outcome.record().to_report()
                record["status"] = outcome.status
                save_json(record, out_dir / f"{outcome.request_id}.json")
                outcomes.append(outcome)

        summary = summarize(outcomes)
        summary["profile"] = self.profile
        save_json(summary, out_dir / "summary.json")
        return summary


def find_images(image_dir: Path) -> List[Path]:
    if not image_dir.is_dir():
        raise FileNotFoundError(f"Not a directory: {image_dir}")
    return sorted(p for p in image_dir.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES)


# -------------------- CLI commands --------------------

def cmd_analyze(args: argparse.Namespace) -> None:
    api = DocumentAuthenticityAPI(args.settings, profile=args.profile)
    records = [api.analyze_file(Path(p), report=args.report) for p in args.images]
    out = records[0] if len(records) == 1 else records
    print(json.dumps(out, indent=2, ensure_ascii=False))


def cmd_batch(args: argparse.Namespace) -> None:
    api = DocumentAuthenticityAPI(args.settings, profile=args.profile)
    summary = api.analyze_directory(Path(args.image_dir), Path(args.out))
    print(f"[batch] Analysed {summary['total']} documents. Results in {args.out}/")
    print(json.dumps(summary, indent=2, ensure_ascii=False))


def cmd_profiles(_: argparse.Namespace) -> None:
    print(json.dumps({name: p.to_dict() for name, p in PROFILES.items()}, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Document authenticity analysis engine")
    parser.add_argument("--config", default=str(CONFIG_PATH), help="Settings YAML file")
    parser.add_argument("--log-level", default=None, help="Override logging.level from settings")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze_p = sub.add_parser("analyze", help="Analyse one or more images and print JSON records")
    analyze_p.add_argument("images", nargs="+", help="Image files")
    analyze_p.add_argument("--profile", choices=sorted(PROFILES), default=None)
    analyze_p.add_argument("--report", action="store_true", help="Include diagnostics in the output")

    batch_p = sub.add_parser("batch", help="Analyse every image in a directory concurrently")
    batch_p.add_argument("image_dir", help="Directory of images")
    batch_p.add_argument("--out", required=True, help="Output directory for per-image JSON and summary")
    batch_p.add_argument("--profile", choices=sorted(PROFILES), default=None)

    sub.add_parser("profiles", help="Print the weight and threshold tables")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    args.settings = load_settings(args.config)
    logging.basicConfig(
        level=(args.log_level or args.settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "analyze": cmd_analyze,
        "batch": cmd_batch,
        "profiles": cmd_profiles,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
