# somnia_auto/dex.py
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union
from web3 import Web3
from .config import Settings
from .stats import TxStats
from .submitter import RetryingSubmitter
from .util import (
    to_checksum, erc20_min_abi, swap_router_abi, build_tx_base,
    fmt_amount, to_base_units, get_logger, on_error, tx_hex
)

log = get_logger()

ALREADY_APPROVED = "ALREADY_APPROVED"

ApprovalResult = Optional[str]  # tx hash | ALREADY_APPROVED | None


class AllowanceDecision(Enum):
    SUFFICIENT = "sufficient"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NEEDS_APPROVAL = "needs_approval"


def decide_allowance(owner_balance: int, current_allowance: int, required: int) -> AllowanceDecision:
    if owner_balance < required:
        return AllowanceDecision.INSUFFICIENT_BALANCE
    if current_allowance >= required:
        return AllowanceDecision.SUFFICIENT
    return AllowanceDecision.NEEDS_APPROVAL


def erc20(w3: Web3, token: str):
    return w3.eth.contract(address=to_checksum(w3, token), abi=erc20_min_abi())


def router(w3: Web3, address: str):
    return w3.eth.contract(address=to_checksum(w3, address), abi=swap_router_abi())


def native_balance_ok(w3: Web3, address: str, settings: Settings) -> Tuple[bool, Decimal]:
    bal = Decimal(w3.eth.get_balance(address)) / Decimal(10 ** 18)
    return bal >= settings.min_native_balance, bal


def approve_token(w3: Web3, submitter: RetryingSubmitter, wallet, token: str, spender: str,
                  amount_human: Union[int, Decimal], stats: TxStats) -> ApprovalResult:
    """Approve `spender` for `amount_human` tokens unless the allowance already covers it."""
    settings = submitter.settings
    r = submitter.reporter
    w = wallet.index
    sym = settings.token_in_symbol
    try:
        ok, stt = native_balance_ok(w3, wallet.address, settings)
        if not ok:
            r.error(f"Error: Wallet {w} │ Insufficient STT balance for approval: {stt} STT < {settings.min_native_balance} STT",
                    panel=f"Wallet {w}: Insufficient STT for approval ({stt} STT)")
            stats.failed_before_submit()
            return None

        c = erc20(w3, token)
        decimals = int(c.functions.decimals().call())
        required = to_base_units(amount_human, decimals)
        current = int(c.functions.allowance(wallet.address, to_checksum(w3, spender)).call())
        balance = int(c.functions.balanceOf(wallet.address).call())

        r.info(f"Wallet {w} │ Current Allowance: {current} (wei) for spender {spender}")
        r.info(f"Wallet {w} │ Token Balance ({sym}): {fmt_amount(balance, decimals)} {sym}")
        r.info(f"Wallet {w} │ Amount to Approve: {amount_human} {sym} ({required} wei)")

        decision = decide_allowance(balance, current, required)
        if decision is AllowanceDecision.INSUFFICIENT_BALANCE:
            r.error(f"Error: Wallet {w} │ Insufficient {sym} balance to approve. Has {fmt_amount(balance, decimals)} {sym}, needs {amount_human} {sym}.",
                    panel=f"Wallet {w}: Insufficient {sym} balance for approval.")
            stats.failed_before_submit()
            return None
        if decision is AllowanceDecision.SUFFICIENT:
            r.success(f"Info: Wallet {w} │ Allowance already sufficient for {amount_human} {sym}. Skipping approval.",
                      panel=f"Wallet {w}: Allowance sufficient for {amount_human} {sym}.")
            return ALREADY_APPROVED

        tx = build_tx_base(w3, wallet.address, settings.approve_gas, settings.chain_id)
        tx_data = c.functions.approve(to_checksum(w3, spender), required).build_transaction(tx)
    except Exception as e:
        on_error(log, f"approve prepare failed for wallet {w}", e)
        r.error(f"Error: Wallet {w} │ Approval failed: {e}", panel=f"Wallet {w}: Approval failed")
        stats.failed_before_submit()
        return None

    receipt = submitter.submit(tx_data, wallet, stats, "Approval")
    return tx_hex(receipt["transactionHash"]) if receipt else None


def swap_amounts(amount_human: Union[int, Decimal], decimals: int, slippage: Decimal) -> Tuple[int, int]:
    amount_in = to_base_units(amount_human, decimals)
    min_out = to_base_units(Decimal(str(amount_human)) * slippage, decimals)
    return amount_in, min_out


def swap_token(w3: Web3, submitter: RetryingSubmitter, wallet, token_in: str, token_out: str,
               amount_human: Union[int, Decimal], recipient: str, stats: TxStats) -> Optional[str]:
    settings = submitter.settings
    r = submitter.reporter
    w = wallet.index
    s_in, s_out = settings.token_in_symbol, settings.token_out_symbol
    slippage = settings.slippage_tolerance
    try:
        c_in = erc20(w3, token_in)
        c_out = erc20(w3, token_out)
        dec_in = int(c_in.functions.decimals().call())
        amount_in, min_out = swap_amounts(amount_human, dec_in, slippage)

        bal_in = int(c_in.functions.balanceOf(wallet.address).call())
        bal_out = int(c_out.functions.balanceOf(wallet.address).call())

        r.info(f"Wallet {w} │ Pre-Swap {s_in} Balance: {fmt_amount(bal_in, dec_in)} {s_in}")
        r.info(f"Wallet {w} │ Pre-Swap {s_out} Balance: {fmt_amount(bal_out, 18)} {s_out}")
        r.info(f"Wallet {w} │ Amount to Swap (in {s_in}): {amount_human} ({amount_in} wei)")
        r.info(f"Wallet {w} │ Minimum Amount Out (in {s_out}): {fmt_amount(min_out, dec_in)} {s_out} "
               f"({min_out} wei) (Slippage: {(1 - slippage) * 100}%)")

        if bal_in < amount_in:
            r.error(f"Error: Wallet {w} │ Insufficient {s_in} balance for swap. Has {fmt_amount(bal_in, dec_in)} {s_in}, needs {amount_human} {s_in}.",
                    panel=f"Wallet {w}: Insufficient {s_in} for swap.")
            stats.failed_before_submit()
            return None

        params = {
            "tokenIn": to_checksum(w3, token_in),
            "tokenOut": to_checksum(w3, token_out),
            "fee": int(settings.swap_fee),
            "recipient": to_checksum(w3, recipient),
            "amountIn": amount_in,
            "amountOutMinimum": min_out,
            "sqrtPriceLimitX96": 0,  # no price limit
        }
        tx = build_tx_base(w3, wallet.address, settings.swap_gas, settings.chain_id)
        tx_data = router(w3, settings.swap_router).functions.exactInputSingle(params).build_transaction(tx)
    except Exception as e:
        on_error(log, f"swap prepare failed for wallet {w}", e)
        r.error(f"Error: Wallet {w} │ Swap failed: {e}", panel=f"Wallet {w}: Swap failed")
        stats.failed_before_submit()
        return None

    receipt = submitter.submit(tx_data, wallet, stats, "Swap")
    return tx_hex(receipt["transactionHash"]) if receipt else None
