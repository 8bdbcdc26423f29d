# somnia_auto/util.py
import random, time
from decimal import Decimal, ROUND_FLOOR
from typing import Tuple
from eth_account import Account
from web3 import Web3

# --- pretty logging utils ---
import logging, sys
from .config import LOG_LEVEL, LOG_COLOR, LOG_JSON, DEBUG

RESET = "\x1b[0m"
COLORS = {
    "DEBUG": "\x1b[38;5;245m",
    "INFO":  "\x1b[38;5;39m",
    "WARNING": "\x1b[38;5;214m",
    "ERROR": "\x1b[38;5;203m",
}

class _HumanFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        msg = record.getMessage()
        if LOG_COLOR:
            color = COLORS.get(level, "")
            return f"{color}{level.lower()[:5]:>5}{RESET} {msg}"
        return f"{level.lower()[:5]:>5} {msg}"

class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        import json
        payload = {
            "ts": round(time.time(), 3),
            "level": record.levelname.lower(),
            "msg": record.getMessage(),
            "logger": record.name,
        }
        if DEBUG and record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

_log = None

def get_logger(name="somnia"):
    global _log
    return _log if _log else init_logging(name)

def init_logging(name="somnia"):
    global _log
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    h = logging.StreamHandler(sys.stdout)
    h.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    h.setFormatter(_JsonFormatter() if LOG_JSON else _HumanFormatter())
    # avoid duplicate handlers
    log.handlers[:] = [h]
    log.propagate = False
    _log = log
    return log

# --- pretty helpers ---
def short(x: object, keep: int = 6) -> str:
    if x is None:
        return "-"
    s = str(x)
    if s.startswith("0x") and len(s) > 2*keep+2:
        return f"{s[:2+keep]}…{s[-keep:]}"
    if len(s) > keep*2:
        return f"{s[:keep]}…{s[-keep:]}"
    return s

def fmt_amount(raw_amount: int, decimals: int) -> str:
    if decimals <= 0:
        return str(raw_amount)
    q = 10 ** decimals
    whole = raw_amount // q
    frac = raw_amount % q
    if frac == 0:
        return f"{whole}"
    # trim trailing zeros, limit length
    s = f"{frac:0{decimals}d}".rstrip("0")
    s = s[:8]  # keep short
    return f"{whole}.{s}"

def to_base_units(amount, decimals: int) -> int:
    """floor(amount * 10**decimals) without going through float."""
    value = Decimal(str(amount)) * (Decimal(10) ** int(decimals))
    return int(value.to_integral_value(rounding=ROUND_FLOOR))

def on_error(log, msg: str, exc: Exception = None):
    if DEBUG and exc:
        log.exception(msg)
    else:
        log.error(f"{msg}: {exc}" if exc else msg)

def to_checksum(w3: Web3, addr: str) -> str:
    return Web3.to_checksum_address(addr)

def tx_hex(value) -> str:
    return Web3.to_hex(value)

def random_int(min_v: int, max_v: int, rng=random) -> int:
    """Inclusive on both ends."""
    return rng.randint(min_v, max_v)

def make_account(pk: str):
    return Account.from_key(pk)

def build_tx_base(w3: Web3, from_addr: str, gas_limit: int, chain_id: int):
    # nonce is filled right before each send
    return {
        "from": from_addr,
        "value": 0,
        "gasPrice": w3.eth.gas_price,
        "gas": gas_limit,
        "chainId": chain_id,
    }

def erc20_min_abi():
    # balanceOf, decimals, approve, allowance
    return [
        {"constant":True,"inputs":[{"name":"owner","type":"address"}],"name":"balanceOf","outputs":[{"name":"","type":"uint256"}],"type":"function"},
        {"constant":True,"inputs":[],"name":"decimals","outputs":[{"name":"","type":"uint8"}],"type":"function"},
        {"constant":False,"inputs":[{"name":"spender","type":"address"},{"name":"value","type":"uint256"}],"name":"approve","outputs":[{"name":"","type":"bool"}],"type":"function"},
        {"constant":True,"inputs":[{"name":"owner","type":"address"},{"name":"spender","type":"address"}],"name":"allowance","outputs":[{"name":"","type":"uint256"}],"type":"function"},
    ]

def swap_router_abi():
    # SwapRouter02 exactInputSingle (no deadline in params)
    return [
      {
        "name":"exactInputSingle","type":"function","stateMutability":"nonpayable",
        "inputs":[{"name":"params","type":"tuple","components":[
          {"name":"tokenIn","type":"address"},
          {"name":"tokenOut","type":"address"},
          {"name":"fee","type":"uint24"},
          {"name":"recipient","type":"address"},
          {"name":"amountIn","type":"uint256"},
          {"name":"amountOutMinimum","type":"uint256"},
          {"name":"sqrtPriceLimitX96","type":"uint160"}
        ]}],
        "outputs":[{"name":"amountOut","type":"uint256"}]
      }
    ]

def range_pick(bounds: Tuple[int, int], rng=random) -> int:
    return random_int(bounds[0], bounds[1], rng)
