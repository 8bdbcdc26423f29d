# somnia_auto/cli.py
import argparse
import sys

from .orchestrator import run_mint_ping, run_mint_susdt, run_nft_collection, run_swapping
from .util import init_logging

ROUTINES = {
    "swap": run_swapping,
    "mint-ping": run_mint_ping,
    "mint-susdt": run_mint_susdt,
    "nft": run_nft_collection,
}


def console_input(prompt: str, kind: str, default):
    raw = input(f"{prompt} [{default}]: ").strip()
    return raw if raw else default


def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="somnia-auto", description="Somnia testnet automation")
    p.add_argument("routine", choices=sorted(ROUTINES))
    p.add_argument("--yes", action="store_true", help="accept every default instead of prompting")
    args = p.parse_args(argv)

    init_logging()
    ask = None if args.yes else console_input
    try:
        ROUTINES[args.routine](request_input=ask)
    except KeyboardInterrupt:
        print("\ninterrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
