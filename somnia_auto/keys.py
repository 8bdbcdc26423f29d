# somnia_auto/keys.py
import os
import random
import re
from dataclasses import dataclass, field
from typing import List, Union

from eth_account.signers.local import LocalAccount

from .errors import KeyFileError
from .report import Reporter
from .util import make_account

KEY_FILE_TEMPLATE = (
    "# Add private keys here, one per line\n"
    "# Example: 0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef\n"
)

_HEX64 = re.compile(r"^[a-fA-F0-9]{64}$")


@dataclass(frozen=True)
class Wallet:
    index: int
    line: int
    private_key: str = field(repr=False)
    address: str
    account: LocalAccount = field(repr=False, compare=False)

    @classmethod
    def from_key(cls, index: int, line: int, private_key: str) -> "Wallet":
        acct = make_account(private_key)
        return cls(index=index, line=line, private_key=private_key, address=acct.address, account=acct)


def is_valid_private_key(key) -> Union[str, bool]:
    """Return the key as 0x + 64 hex chars, or False."""
    if not key or not isinstance(key, str):
        return False
    key = key.strip()
    clean = key[2:] if key.startswith("0x") else key
    if not _HEX64.match(clean):
        return False
    return "0x" + clean


def load_wallets(path: str, reporter: Reporter) -> List[Wallet]:
    reporter.info(f"Checking key file at: {os.path.abspath(path)}")
    if not os.path.exists(path):
        reporter.error(f"Error: {os.path.basename(path)} file not found")
        with open(path, "w", encoding="utf-8") as f:
            f.write(KEY_FILE_TEMPLATE)
        raise KeyFileError(f"{os.path.basename(path)} file not found")

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        reporter.error(f"Error: Failed to read {path}: {e}")
        raise KeyFileError(f"Failed to read {path}") from e

    content = content.replace("\r\n", "\n").replace("\r", "\n")
    wallets: List[Wallet] = []
    for idx, raw in enumerate(content.split("\n"), start=1):
        key = raw.strip()
        if not key or key.startswith("#"):
            continue
        valid = is_valid_private_key(key)
        if not valid:
            reporter.warn(f"Invalid key at line {idx}: length={len(key)}, content={key[:10]}...")
            continue
        wallets.append(Wallet.from_key(len(wallets) + 1, idx, valid))

    if not wallets:
        reporter.error(f"Error: No valid private keys found in {os.path.basename(path)}")
        raise KeyFileError("No valid private keys found")

    reporter.info(f"Loaded {len(wallets)} valid private keys")
    return wallets


def shuffle_wallets(wallets: List[Wallet], rng=random) -> List[Wallet]:
    out = list(wallets)
    rng.shuffle(out)
    return out
