# somnia_auto/chain.py
from typing import Optional
from web3 import Web3
from .config import Settings
from .errors import ChainConnectionError
from .report import Reporter
from .util import get_logger, short, tx_hex

log = get_logger()

def get_w3(settings: Settings) -> Web3:
    return Web3(Web3.HTTPProvider(settings.rpc_url, request_kwargs={"timeout": settings.rpc_timeout}))

def connect(settings: Settings, reporter: Reporter, w3: Optional[Web3] = None) -> Web3:
    try:
        reporter.info("Initializing Web3 connection...")
        w3 = w3 if w3 is not None else get_w3(settings)
        if not w3.is_connected():
            raise ChainConnectionError(f"Failed to connect to RPC: {settings.rpc_url}")
        chain_id = w3.eth.chain_id
    except Exception as e:
        reporter.error(f"Error: Web3 connection failed: {e}", panel=f"Error: Web3 connection failed: {e}")
        if isinstance(e, ChainConnectionError):
            raise
        raise ChainConnectionError(str(e)) from e
    if chain_id != settings.chain_id:
        reporter.warn(f"Connected chain id {chain_id} differs from configured {settings.chain_id}")
    reporter.success(f"Success: Connected to Somnia Testnet │ Chain ID: {chain_id}",
                     panel=f"Connected to Somnia Testnet │ Chain ID: {chain_id}")
    return w3

def send_and_wait(w3: Web3, tx: dict, wallet, timeout: int):
    """Sign with the wallet's key, broadcast once and wait for the receipt."""
    tx["nonce"] = w3.eth.get_transaction_count(wallet.address, "pending")
    signed = wallet.account.sign_transaction(tx)
    txh = w3.eth.send_raw_transaction(signed.raw_transaction)
    log.debug(f"sent {short(tx_hex(txh))} nonce={tx['nonce']} from={short(wallet.address)}")
    return w3.eth.wait_for_transaction_receipt(txh, timeout=timeout)
