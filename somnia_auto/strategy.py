# somnia_auto/strategy.py
import random, time
from decimal import Decimal
from typing import Callable, Union
from web3 import Web3

from .dex import approve_token, swap_token
from .stats import TxStats
from .submitter import RetryingSubmitter
from .util import range_pick


def run_for_wallet(w3: Web3, submitter: RetryingSubmitter, wallet, amount: Union[int, Decimal],
                   swap_count: int, stats: TxStats,
                   sleep: Callable[[float], None] = time.sleep, rng=random) -> int:
    """Approve the router once for all swaps, then swap `swap_count` times. Returns successful swaps."""
    settings = submitter.settings
    r = submitter.reporter
    w = wallet.index

    # approve the total for every swap of this wallet
    approved = approve_token(w3, submitter, wallet, settings.token_in, settings.swap_router,
                             Decimal(str(amount)) * swap_count, stats)
    if approved is None:
        r.log(f"{{yellow-fg}}Skipping wallet {w} due to approval failure{{/yellow-fg}}")
        r.panel(f"{{yellow-fg}}\n Skipping wallet {w} due to approval failure \n{{/yellow-fg}}")
        return 0

    ok = 0
    for n in range(swap_count):
        r.panel(f"{{cyan-fg}}\n Wallet {w}: Performing swap {n + 1}/{swap_count} \n{{/cyan-fg}}")
        r.log(f"{{cyan-fg}}Wallet {w}: Performing swap {n + 1}/{swap_count}{{/cyan-fg}}")
        if swap_token(w3, submitter, wallet, settings.token_in, settings.token_out,
                      amount, wallet.address, stats):
            ok += 1

        if n < swap_count - 1:
            delay = range_pick(settings.swap_pause, rng)
            r.info(f"Pausing {delay} seconds before next swap", panel=f"Pausing {delay} seconds before next swap...")
            sleep(delay)
    return ok
