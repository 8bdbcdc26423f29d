# somnia_auto/orchestrator.py
"""
Entry points driven by a UI harness.

Each takes (update_panel, add_log, close_ui, request_input) and returns when the
run is over. Errors are reported through both sinks and never raised, except
KeyboardInterrupt.
"""
import random, time
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from web3 import Web3

from .chain import connect
from .config import Settings, load_settings
from .keys import Wallet, load_wallets, shuffle_wallets
from .mint import mint_ping, mint_susdt
from .nft import burn_nft, deploy_nft, mint_nft, record_contract
from .report import Reporter
from .stats import TxStats
from .strategy import run_for_wallet
from .submitter import RetryingSubmitter
from .util import get_logger, on_error, range_pick

log = get_logger()

NFT_MENU = ("Select action:\n 1. Create NFT Collection (Deploy)\n 2. Mint NFT\n 3. Burn NFT\n"
            "Enter choice (1, 2, or 3): ")


def _ask(request_input, prompt: str, kind: str, default):
    """Ask the harness for a value; numbers come back as Decimal, None when unparsable."""
    value = request_input(prompt, kind, default) if callable(request_input) else default
    if value is None or (isinstance(value, str) and not value.strip()):
        value = default
    if kind != "number":
        return str(value).strip()
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    # NaN and Infinity parse but cannot be compared or converted
    return parsed if parsed.is_finite() else None


def _load(reporter: Reporter, settings: Settings, shuffle: bool, rng) -> List[Wallet]:
    wallets = load_wallets(settings.key_file, reporter)
    if shuffle:
        wallets = shuffle_wallets(wallets, rng)
    reporter.info(f"Info: Found {len(wallets)} wallets")
    reporter.panel(f"{{cyan-fg}}\n Found {len(wallets)} wallets \n{{/cyan-fg}}")
    return wallets


def _fail(reporter: Reporter, e: Exception):
    on_error(log, "run aborted", e)
    reporter.log(f"{{red-fg}}✖ Error: {e}{{/red-fg}}")
    reporter.panel(f"{{red-fg}}\n ✖ Error: {e} \n{{/red-fg}}")


def run_swapping(update_panel=None, add_log=None, close_ui=None, request_input=None, *,
                 settings: Optional[Settings] = None, w3: Optional[Web3] = None,
                 sleep: Callable[[float], None] = time.sleep, rng=random) -> Optional[TxStats]:
    reporter = Reporter(add_log, update_panel)
    try:
        settings = settings or load_settings()
        s_in, s_out = settings.token_in_symbol, settings.token_out_symbol
        reporter.banner(f"START SWAPPING {s_in} -> {s_out}")
        wallets = _load(reporter, settings, settings.shuffle_wallets, rng)

        amount = _ask(request_input, f"Amount of {s_in} to swap (e.g., 100)", "number", settings.default_swap_amount)
        if amount is None or amount <= 0:
            amount = Decimal(settings.default_swap_amount)
        reporter.panel(f"{{cyan-fg}}\n Amount to swap: {amount} {s_in} \n{{/cyan-fg}}")
        reporter.log(f"{{cyan-fg}}Amount to swap: {amount} {s_in}{{/cyan-fg}}")

        times = _ask(request_input, "Number of swaps per wallet (default 1)", "number", settings.default_swap_count)
        swap_times = int(times) if times is not None and times >= 1 else settings.default_swap_count
        reporter.panel(f"{{cyan-fg}}\n Swaps per wallet: {swap_times} \n{{/cyan-fg}}")
        reporter.log(f"{{cyan-fg}}Swaps per wallet: {swap_times}{{/cyan-fg}}")

        w3 = connect(settings, reporter, w3)
        stats = TxStats()
        submitter = RetryingSubmitter(w3, reporter, settings, sleep=sleep, rng=rng)

        successful = 0
        for i, wallet in enumerate(wallets):
            reporter.banner(f"PROCESSING WALLET {wallet.index} ({i + 1}/{len(wallets)})")
            successful += run_for_wallet(w3, submitter, wallet, amount, swap_times, stats, sleep=sleep, rng=rng)

            if i < len(wallets) - 1:
                delay = range_pick(settings.sleep_between_wallets, rng)
                reporter.info(f"Waiting {delay} seconds before processing next wallet",
                              panel=f"Waiting {delay} seconds before processing next wallet...")
                sleep(delay)

        total = len(wallets) * swap_times
        reporter.banner(f"COMPLETED: {successful}/{total} SWAPS SUCCESSFUL", color="green-fg")
        reporter.info(f"Stats: {stats.summary()}")
        return stats
    except KeyboardInterrupt:
        raise
    except Exception as e:
        _fail(reporter, e)
        return None


def run_mint_ping(update_panel=None, add_log=None, close_ui=None, request_input=None, *,
                  settings: Optional[Settings] = None, w3: Optional[Web3] = None,
                  sleep: Callable[[float], None] = time.sleep, rng=random) -> int:
    reporter = Reporter(add_log, update_panel)
    try:
        settings = settings or load_settings()
        reporter.banner("START MINTING $PING")
        wallets = _load(reporter, settings, settings.shuffle_wallets, rng)
        w3 = connect(settings, reporter, w3)

        minted = 0
        for i, wallet in enumerate(wallets):
            reporter.banner(f"Processing wallet: {i + 1}/{len(wallets)}")
            if mint_ping(w3, wallet, settings, reporter):
                minted += 1
            if i < len(wallets) - 1:
                delay = range_pick(settings.mint_ping_sleep, rng)
                reporter.info(f"Info: Sleeping for {delay} seconds", panel=f"Sleeping for {delay} seconds...")
                sleep(delay)

        reporter.banner(f"COMPLETED: {minted}/{len(wallets)} wallets successful", color="green-fg")
        return minted
    except KeyboardInterrupt:
        raise
    except Exception as e:
        _fail(reporter, e)
        return 0


def run_mint_susdt(update_panel=None, add_log=None, close_ui=None, request_input=None, *,
                   settings: Optional[Settings] = None, w3: Optional[Web3] = None,
                   sleep: Callable[[float], None] = time.sleep, rng=random) -> int:
    reporter = Reporter(add_log, update_panel)
    try:
        settings = settings or load_settings()
        reporter.banner("MINT sUSDT - SOMNIA TESTNET")
        wallets = _load(reporter, settings, False, rng)
        w3 = connect(settings, reporter, w3)
        if settings.shuffle_wallets:
            wallets = shuffle_wallets(wallets, rng)

        minted = 0
        for i, wallet in enumerate(wallets):
            reporter.banner(f"PROCESSING WALLET {wallet.index} ({i + 1}/{len(wallets)})")
            if mint_susdt(w3, wallet, settings, reporter, rng=rng):
                minted += 1
            if i < len(wallets) - 1:
                lo, hi = settings.mint_susdt_sleep
                delay = lo + rng.random() * (hi - lo)
                reporter.info(f"Info: Pausing {delay:.2f} seconds", panel=f"Pausing {delay:.2f} seconds...")
                sleep(delay)

        reporter.banner(f"COMPLETED: {minted}/{len(wallets)} TRANSACTIONS SUCCESSFUL", color="green-fg")
        return minted
    except KeyboardInterrupt:
        raise
    except Exception as e:
        _fail(reporter, e)
        return 0


def run_nft_collection(update_panel=None, add_log=None, close_ui=None, request_input=None, *,
                       settings: Optional[Settings] = None, w3: Optional[Web3] = None,
                       sleep: Callable[[float], None] = time.sleep, rng=random) -> int:
    reporter = Reporter(add_log, update_panel)
    try:
        settings = settings or load_settings()
        reporter.banner("NFT MANAGEMENT - SOMNIA TESTNET")
        wallets = _load(reporter, settings, False, rng)
        w3 = connect(settings, reporter, w3)

        action = _ask(request_input, NFT_MENU, "text", "1")
        if action == "1":
            name = _ask(request_input, "Enter NFT collection name (e.g., Kazuha NFT):", "text", "Kazuha NFT")
            symbol = _ask(request_input, "Enter collection symbol (e.g., KAZUHA):", "text", "KAZUHA")
            max_supply = _ask(request_input, "Enter maximum supply (e.g., 999):", "number", 999)
            if max_supply is None or max_supply <= 0:
                reporter.error("Error: Please enter a valid number for max supply",
                               panel="Error: Please enter a valid number for max supply")
                return 0

            def op(wallet):
                result = deploy_nft(w3, wallet, settings, reporter, name, symbol, int(max_supply))
                if result:
                    record_contract(settings.nft_log_file, result["address"])
                return bool(result)
        elif action in ("2", "3"):
            contract_address = _ask(request_input, "Enter NFT contract address:", "text", "")
            token_id = _ask(request_input, "Enter Token ID:", "number", 1)
            token_uri = _ask(request_input, "Enter Token URI (e.g., ipfs://...):", "text", "") if action == "2" else ""
            if token_id is None or token_id <= 0:
                reporter.error("Error: Please enter a valid number for Token ID",
                               panel="Error: Please enter a valid number for Token ID")
                return 0
            if not Web3.is_address(contract_address):
                reporter.error(f"Error: Invalid contract address: {contract_address!r}",
                               panel="Error: Invalid contract address")
                return 0

            def op(wallet):
                if action == "2":
                    return mint_nft(w3, wallet, settings, reporter, contract_address, int(token_id), token_uri)
                return burn_nft(w3, wallet, settings, reporter, contract_address, int(token_id))
        else:
            reporter.error("Error: Invalid choice", panel="Error: Invalid choice")
            return 0

        done = 0
        for i, wallet in enumerate(wallets):
            reporter.banner(f"PROCESSING WALLET {wallet.index} ({i + 1}/{len(wallets)})")
            if op(wallet):
                done += 1
            if i < len(wallets) - 1:
                sleep(settings.nft_sleep)

        reporter.banner(f"COMPLETED: {done}/{len(wallets)} TRANSACTIONS SUCCESSFUL", color="green-fg")
        return done
    except KeyboardInterrupt:
        raise
    except Exception as e:
        _fail(reporter, e)
        return 0
