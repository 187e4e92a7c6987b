"""Render and save the front and inside previews for one order.

Usage (from backend/):
    python -m scripts.render_order_previews --order-id <id> [--mode production] [--spread] [--out-dir out/]

With --out-dir the two PNGs are also written to disk for inspection.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from db import init_db
from domain.models import RenderMode
from services.card_previews import render_order
from services.errors import CardRenderError

LOG = logging.getLogger("render_order_previews")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Render card previews for an order")
    parser.add_argument("--order-id", required=True)
    parser.add_argument("--mode", choices=[m.value for m in RenderMode], default=RenderMode.PREVIEW.value)
    parser.add_argument("--spread", action="store_true", help="Render faces on a double-width spread")
    parser.add_argument("--out-dir", type=Path, default=None, help="Also write the PNGs here")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    init_db()

    try:
        result = render_order(args.order_id, mode=args.mode, spread=args.spread)
    except CardRenderError as exc:
        LOG.error("Rendering order %s failed: %s", args.order_id, exc)
        return 1

    for face in (result.front, result.inside):
        LOG.info("%s: %s (%d bytes)", face.face.value, face.strategy, len(face.image))
        if args.out_dir:
            args.out_dir.mkdir(parents=True, exist_ok=True)
            out = args.out_dir / f"{args.order_id}_{face.face.value}.png"
            out.write_bytes(face.image)
            LOG.info("Wrote %s", out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
