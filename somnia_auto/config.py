# somnia_auto/config.py
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Tuple
from dotenv import load_dotenv

load_dotenv()

def _env(name: str, default: str = "") -> str:
    v = os.getenv(name, default).strip()
    return v

def _env_float(name: str, default: float) -> float:
    v = _env(name)
    return float(v) if v else float(default)

def _env_int(name: str, default: int) -> int:
    v = _env(name)
    return int(v) if v else int(default)

def _env_bool(name: str, default: bool) -> bool:
    v = _env(name)
    if not v:
        return default
    return v.lower() in ("1","true","yes","y","on")

def _env_decimal(name: str, default: str) -> Decimal:
    v = _env(name)
    try:
        return Decimal(v) if v else Decimal(default)
    except InvalidOperation:
        return Decimal(default)

def _env_range(prefix: str, default: Tuple[int, int]) -> Tuple[int, int]:
    lo = _env_int(f"{prefix}_MIN", default[0])
    hi = _env_int(f"{prefix}_MAX", default[1])
    return (min(lo, hi), max(lo, hi))


@dataclass(frozen=True)
class Settings:
    # network
    rpc_url: str = "https://dream-rpc.somnia.network"
    explorer_url: str = "https://shannon-explorer.somnia.network"
    chain_id: int = 50312
    rpc_timeout: int = 30
    receipt_timeout: int = 180

    # wallets
    key_file: str = "pvkey.txt"
    shuffle_wallets: bool = True
    min_native_balance: Decimal = Decimal("0.001")  # STT kept for gas

    # swap: $PONG -> $PING through the V3 router
    swap_router: str = "0x6aac14f090a35eea150705f72d90e4cdc4a49b2c"
    token_in: str = "0x9beaA0016c22B646Ac311Ab171270B0ECf23098F"   # $PONG
    token_out: str = "0x33E7fAB0a8a5da1A923180989bD617c9c2D1C493"  # $PING
    token_in_symbol: str = "$PONG"
    token_out_symbol: str = "$PING"
    swap_fee: int = 500  # 0.05%
    slippage_tolerance: Decimal = Decimal("0.95")
    approve_gas: int = 3_000_000
    swap_gas: int = 3_000_000
    default_swap_amount: int = 100
    default_swap_count: int = 1

    # retries
    max_retries: int = 5

    # pauses, seconds
    sleep_between_wallets: Tuple[int, int] = (30, 90)
    swap_pause: Tuple[int, int] = (1, 5)
    mint_ping_sleep: Tuple[int, int] = (100, 300)
    mint_susdt_sleep: Tuple[int, int] = (10, 30)
    nft_sleep: int = 10

    # $PING faucet mint
    ping_contract: str = "0x33E7fAB0a8a5da1A923180989bD617c9c2D1C493"
    ping_mint_amount: int = 1000
    ping_mint_gas: int = 2_473_724

    # sUSDT faucet mint
    susdt_contract: str = "0x65296738D4E5edB1515e40287B6FDf8320E6eE04"
    susdt_mint_amount: int = 1000
    susdt_mint_gas: int = 2_000_000
    susdt_gas_bump: float = 0.07

    # NFT collection
    nft_gas: int = 20_000_000
    nft_log_file: str = "contractNFT.txt"
    solc_version: str = "0.8.19"

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


def load_settings() -> Settings:
    d = Settings()
    return Settings(
        rpc_url=_env("SOMNIA_RPC", d.rpc_url),
        explorer_url=_env("SOMNIA_EXPLORER", d.explorer_url),
        chain_id=_env_int("SOMNIA_CHAIN_ID", d.chain_id),
        rpc_timeout=_env_int("RPC_TIMEOUT", d.rpc_timeout),
        receipt_timeout=_env_int("RECEIPT_TIMEOUT", d.receipt_timeout),
        key_file=_env("KEY_FILE", d.key_file),
        shuffle_wallets=_env_bool("SHUFFLE_WALLETS", d.shuffle_wallets),
        min_native_balance=_env_decimal("MIN_NATIVE_BALANCE", str(d.min_native_balance)),
        swap_router=_env("SWAP_ROUTER", d.swap_router),
        token_in=_env("TOKEN_PONG", d.token_in),
        token_out=_env("TOKEN_PING", d.token_out),
        swap_fee=_env_int("SWAP_FEE", d.swap_fee),
        slippage_tolerance=_env_decimal("SLIPPAGE_TOLERANCE", str(d.slippage_tolerance)),
        approve_gas=_env_int("APPROVE_GAS", d.approve_gas),
        swap_gas=_env_int("SWAP_GAS", d.swap_gas),
        max_retries=_env_int("MAX_RETRIES", d.max_retries),
        sleep_between_wallets=_env_range("SLEEP_BETWEEN", d.sleep_between_wallets),
        swap_pause=_env_range("SWAP_PAUSE", d.swap_pause),
        mint_ping_sleep=_env_range("MINT_PING_SLEEP", d.mint_ping_sleep),
        mint_susdt_sleep=_env_range("MINT_SUSDT_SLEEP", d.mint_susdt_sleep),
        nft_sleep=_env_int("NFT_SLEEP", d.nft_sleep),
        ping_contract=_env("PING_CONTRACT", d.ping_contract),
        susdt_contract=_env("SUSDT_CONTRACT", d.susdt_contract),
        susdt_gas_bump=_env_float("SUSDT_GAS_BUMP", d.susdt_gas_bump),
        nft_gas=_env_int("NFT_GAS", d.nft_gas),
        nft_log_file=_env("NFT_LOG_FILE", d.nft_log_file),
        solc_version=_env("SOLC_VERSION", d.solc_version),
    )

# ---- Logging flags ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()  # DEBUG/INFO/WARN/ERROR
LOG_COLOR = os.getenv("LOG_COLOR", "1") not in ("0","false","False")
LOG_JSON  = os.getenv("LOG_JSON", "0") in ("1","true","True")
DEBUG     = os.getenv("DEBUG", "0") in ("1","true","True")
