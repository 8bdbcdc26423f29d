# somnia_auto/mint.py
import random
from web3 import Web3
from .chain import send_and_wait
from .config import Settings
from .dex import erc20, native_balance_ok
from .report import Reporter
from .util import get_logger, on_error, to_checksum, tx_hex

log = get_logger()

MINT_SELECTOR = "0x1249c58b"


def ping_mint_calldata(address: str, amount: int, decimals: int = 18) -> str:
    # mint(address,uint256)-shaped payload used by the $PING faucet
    addr = address.lower().replace("0x", "").rjust(64, "0")
    value = format(int(amount) * 10 ** decimals, "064x")
    return MINT_SELECTOR + addr + value


def mint_ping(w3: Web3, wallet, settings: Settings, reporter: Reporter) -> bool:
    w = wallet.index
    try:
        ok, stt = native_balance_ok(w3, wallet.address, settings)
        reporter.info(f"Wallet {w} │ STT balance: {stt} STT")
        if not ok:
            reporter.warn(f"Warning: Wallet {w} │ Insufficient STT: {wallet.address}",
                          panel=f"Wallet {w}: Insufficient STT")
            return False

        tx = {
            "from": wallet.address,
            "to": to_checksum(w3, settings.ping_contract),
            "value": 0,
            "data": ping_mint_calldata(wallet.address, settings.ping_mint_amount),
            "gas": settings.ping_mint_gas,
            "gasPrice": w3.eth.gas_price,
            "chainId": settings.chain_id,
        }
        receipt = send_and_wait(w3, tx, wallet, settings.receipt_timeout)
        tx_hash = tx_hex(receipt["transactionHash"])
        reporter.success(f"Success: Wallet {w} │ Tx sent: {settings.tx_url(tx_hash)}", panel=f"Wallet {w}: Tx sent")
        if receipt["status"]:
            reporter.success(f"Success: Wallet {w} │ Minted {settings.ping_mint_amount} $PING successfully",
                             panel=f"Wallet {w}: Minted {settings.ping_mint_amount} $PING successfully")
            return True
        reporter.error(f"Error: Wallet {w} │ Mint failed", panel=f"Wallet {w}: Mint failed")
        return False
    except Exception as e:
        on_error(log, f"mint $PING failed for wallet {w}", e)
        reporter.error(f"Error: Wallet {w} │ Processing failed: {e}", panel=f"Wallet {w}: Processing failed: {e}")
        return False


def has_minted_susdt(w3: Web3, address: str, settings: Settings, reporter: Reporter) -> bool:
    try:
        return int(erc20(w3, settings.susdt_contract).functions.balanceOf(address).call()) > 0
    except Exception as e:
        reporter.warn(f"Warning: Failed to check sUSDT balance: {e}")
        return False


def mint_susdt(w3: Web3, wallet, settings: Settings, reporter: Reporter, rng=random) -> bool:
    w = wallet.index
    if has_minted_susdt(w3, wallet.address, settings, reporter):
        reporter.warn("Warning: This wallet has already minted sUSDT! Skipping this request.",
                      panel=f"Wallet {w}: Already minted sUSDT")
        return False

    try:
        reporter.panel(f"Checking balance for wallet {w}...")
        ok, stt = native_balance_ok(w3, wallet.address, settings)
        if not ok:
            reporter.error(f"Error: Insufficient balance: {stt} STT < {settings.min_native_balance} STT",
                           panel=f"Wallet {w}: Insufficient balance: {stt} STT")
            return False

        reporter.panel(f"Preparing transaction for wallet {w}...")
        # 0-7% over the node's price
        gas_price = int(w3.eth.gas_price * (1 + rng.random() * settings.susdt_gas_bump))
        tx = {
            "from": wallet.address,
            "to": to_checksum(w3, settings.susdt_contract),
            "value": 0,
            "data": MINT_SELECTOR,
            "gas": settings.susdt_mint_gas,
            "gasPrice": gas_price,
            "chainId": settings.chain_id,
        }

        reporter.panel(f"Sending transaction for wallet {w}...")
        receipt = send_and_wait(w3, tx, wallet, settings.receipt_timeout)
        link = settings.tx_url(tx_hex(receipt["transactionHash"]))
        if receipt["status"]:
            reporter.success(f"Success: Successfully minted {settings.susdt_mint_amount} sUSDT! │ Tx: {link}",
                             panel=f"Wallet {w}: Successfully minted {settings.susdt_mint_amount} sUSDT!")
            reporter.log(f"  Address: {wallet.address}")
            reporter.log(f"  Gas: {receipt['gasUsed']}")
            reporter.log(f"  Block: {receipt['blockNumber']}")
            reporter.log(f"  Balance: {stt} STT")
            return True
        reporter.error(f"Error: Mint failed │ Tx: {link}", panel=f"Wallet {w}: Mint failed")
        return False
    except Exception as e:
        on_error(log, f"mint sUSDT failed for wallet {w}", e)
        reporter.error(f"Error: Failed: {e}", panel=f"Wallet {w}: Failed: {e}")
        return False
