#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from t5beam.contract.api import load_validate_yaml
from t5beam.contract.errors import SubgraphError


def main() -> int:
    ap = argparse.ArgumentParser(description="Validate an encoder subgraph signature YAML")
    ap.add_argument("--sig", type=str, required=True, help="Path to signature YAML")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    path = Path(args.sig)
    try:
        _, params = load_validate_yaml(path)
    except SubgraphError as e:
        print("INVALID\n---")
        print(e)
        return 1
    print("VALID\n---")
    print(params.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
