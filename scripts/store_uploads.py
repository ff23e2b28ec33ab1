#!/usr/bin/env python3
"""
Store local files as uploads, using the database and upload directory
from settings.

Usage:
    python scripts/store_uploads.py spec.json photo=./pic.png [doc=./a.pdf ...]
    python scripts/store_uploads.py spec.json --delete photo=12 photo_thumb=13

The spec file holds the upload spec as JSON, e.g.
    {"photo": [{"name": "photo_thumb", "w": 100, "h": 100}]}
"""

import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from uploader import build_orchestrator  # noqa: E402
from uploader.common.errors import UploaderError  # noqa: E402
from uploader.common.logging_config import setup_logging  # noqa: E402
from uploader.config.settings import get_settings  # noqa: E402
from uploader.ingest.sources import LocalFileSource  # noqa: E402


def parse_pairs(args):
    pairs = {}
    for arg in args:
        name, sep, value = arg.partition("=")
        if not sep:
            raise SystemExit(f"Expected name=value, got '{arg}'")
        pairs[name] = value
    return pairs


def main(argv) -> int:
    if len(argv) < 2:
        print(__doc__, file=sys.stderr)
        return 2

    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    spec = json.loads(Path(argv[0]).read_text())
    orchestrator = build_orchestrator(spec)
    orchestrator.store.create_schema()

    try:
        if argv[1] == "--delete":
            ids = parse_pairs(argv[2:])
            form = {f"{name}_id": value for name, value in ids.items()}
            deleted = [orchestrator.delete_upload(name, form_fields=form) for name in ids]
            print(json.dumps(deleted))
        else:
            files = parse_pairs(argv[1:])
            entity = orchestrator.store_uploads({}, LocalFileSource(files))
            print(json.dumps(entity, indent=2))
    except UploaderError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
