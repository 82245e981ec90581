"""
CLI helper to rebuild the bundled localities file from a raw georef export.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import DEFAULT_LOCALIDADES_PATH
from backend.localidades import LocalidadesError, cargar_localidades, limpiar_localidades

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Clean a georef localities export")
    parser.add_argument("source", type=Path, help="Raw export with a 'localidades' list")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=DEFAULT_LOCALIDADES_PATH,
        help="Where to write the cleaned file",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    try:
        raw = cargar_localidades(args.source)
    except LocalidadesError as e:
        logger.error(str(e))
        return 1

    limpias = limpiar_localidades(raw)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump({"localidades": limpias}, f, ensure_ascii=False, indent=2)
        f.write("\n")
    logger.info(f"Wrote {len(limpias)} of {len(raw)} localities to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
