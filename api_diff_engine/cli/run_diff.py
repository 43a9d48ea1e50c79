import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from api_diff_engine.diffing.config import get_diff_config
from api_diff_engine.diffing.pipeline import diff
from api_diff_engine.errors import InvalidDocumentError
from api_diff_engine.loaders.spec_loader import load_spec
from api_diff_engine.report.release_notes import render
from api_diff_engine.report.schemas import build_change_set_payload

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Write release notes for the changes between two API descriptions."
    )
    parser.add_argument(
        "--previous", default=os.getenv("API_DIFF_PREVIOUS", "previous.json")
    )
    parser.add_argument(
        "--current", default=os.getenv("API_DIFF_CURRENT", "current.json")
    )
    parser.add_argument(
        "--output", default=os.getenv("API_DIFF_OUTPUT", "release-description.md")
    )
    parser.add_argument("--json-output", default=os.getenv("API_DIFF_JSON_OUTPUT"))
    parser.add_argument("--config", default=os.getenv("API_DIFF_CONFIG"))
    parser.add_argument(
        "--log-level", default=os.getenv("API_DIFF_LOG_LEVEL", "INFO")
    )
    return parser


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            raise SystemExit(f"Diff config {config_path} does not exist")
        try:
            config = get_diff_config(config_path)
        except ValueError as exc:
            raise SystemExit(f"Invalid diff config {config_path}: {exc}") from exc
    else:
        config = get_diff_config()

    try:
        previous = load_spec(Path(args.previous))
        current = load_spec(Path(args.current))
    except (OSError, InvalidDocumentError) as exc:
        raise SystemExit(f"Could not load API description: {exc}") from exc

    change_set = diff(previous, current, config)
    output_path = Path(args.output)
    _write(output_path, render(change_set, current, config))
    logger.info("Release notes written output=%s empty=%s", output_path, change_set.is_empty)

    if args.json_output:
        json_path = Path(args.json_output)
        _write(json_path, build_change_set_payload(change_set).model_dump_json(indent=2))
        logger.info("Change set written output=%s", json_path)


if __name__ == "__main__":
    main()
