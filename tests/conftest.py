import pytest
from web3 import Web3

from somnia_auto.config import Settings
from somnia_auto.keys import Wallet
from somnia_auto.report import Reporter
from somnia_auto.stats import TxStats
from somnia_auto.submitter import RetryingSubmitter

TEST_KEYS = ["0x" + "11" * 32, "0x" + "22" * 32, "0x" + "33" * 32]
DEPLOYED = "0x00000000000000000000000000000000000000ab"


def ok():
    return {"status": 1}


def reverted():
    return {"status": 0}


class WaitError:
    """Raised by wait_for_transaction_receipt instead of send_raw_transaction."""

    def __init__(self, exc):
        self.exc = exc


class FakeFn:
    def __init__(self, contract, name, args):
        self.contract = contract
        self.name = name
        self.args = args

    def call(self):
        return self.contract.eth.view(self.contract.address, self.name, self.args)

    def build_transaction(self, tx):
        out = dict(tx)
        if self.contract.address:
            out["to"] = self.contract.address
        out["data"] = "0x" + self.name.encode().hex()
        self.contract.eth.built.append((self.name, self.args, out))
        return out


class _Functions:
    def __init__(self, contract):
        self._contract = contract

    def __getattr__(self, name):
        return lambda *args: FakeFn(self._contract, name, args)


class FakeContract:
    def __init__(self, eth, address=None):
        self.eth = eth
        self.address = address
        self.functions = _Functions(self)

    def constructor(self, *args):
        return FakeFn(self, "constructor", args)


class FakeEth:
    def __init__(self):
        self.chain_id = 50312
        self.gas_price = 10 ** 9
        self.native = {}
        self.tokens = {}
        self.nft_owner = None
        self.outcomes = []
        self.sent = []
        self.built = []
        self.nonce_reads = []
        self._receipts = {}
        self._nonce = 0

    # token state
    def set_token(self, address, decimals=18, balances=None, allowance=0):
        self.tokens[address.lower()] = {
            "decimals": decimals,
            "balances": {k.lower(): v for k, v in (balances or {}).items()},
            "allowance": allowance,
        }

    def view(self, address, name, args):
        if name == "ownerOf":
            if isinstance(self.nft_owner, Exception):
                raise self.nft_owner
            return self.nft_owner
        token = self.tokens[address.lower()]
        if isinstance(token, Exception):
            raise token
        if name == "decimals":
            return token["decimals"]
        if name == "balanceOf":
            return token["balances"].get(args[0].lower(), 0)
        if name == "allowance":
            return token["allowance"]
        raise AttributeError(name)

    # eth surface
    def contract(self, address=None, abi=None, bytecode=None):
        return FakeContract(self, address)

    def get_balance(self, address):
        return self.native.get(address.lower(), 10 ** 18)

    def get_transaction_count(self, address, block_identifier="latest"):
        self.nonce_reads.append(block_identifier)
        return self._nonce

    def send_raw_transaction(self, raw):
        self.sent.append(raw)
        outcome = self.outcomes.pop(0) if self.outcomes else ok()
        if isinstance(outcome, Exception):
            raise outcome
        txh = bytes([len(self.sent)]) * 32
        self._receipts[txh] = outcome
        return txh

    def wait_for_transaction_receipt(self, txh, timeout=120):
        outcome = self._receipts[txh]
        if isinstance(outcome, WaitError):
            raise outcome.exc
        self._nonce += 1
        receipt = {
            "transactionHash": txh,
            "gasUsed": 21000,
            "blockNumber": 100 + len(self.sent),
            "contractAddress": DEPLOYED,
        }
        receipt.update(outcome)
        return receipt


class FakeWeb3:
    def __init__(self):
        self.eth = FakeEth()
        self.connected = True

    def is_connected(self):
        return self.connected


class Recorder:
    def __init__(self):
        self.logs = []
        self.panels = []

    def add_log(self, msg):
        self.logs.append(msg)

    def update_panel(self, msg):
        self.panels.append(msg)

    def count(self, glyph, where="logs"):
        return sum(1 for m in getattr(self, where) if glyph in m)


class Sleeper:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        key_file=str(tmp_path / "pvkey.txt"),
        nft_log_file=str(tmp_path / "contractNFT.txt"),
        shuffle_wallets=False,
    )


@pytest.fixture
def w3():
    return FakeWeb3()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def reporter(recorder):
    return Reporter(recorder.add_log, recorder.update_panel)


@pytest.fixture
def sleeper():
    return Sleeper()


@pytest.fixture
def wallets():
    return [Wallet.from_key(i + 1, i + 1, k) for i, k in enumerate(TEST_KEYS)]


@pytest.fixture
def wallet(wallets):
    return wallets[0]


@pytest.fixture
def stats():
    return TxStats()


@pytest.fixture
def submitter(w3, reporter, settings, sleeper):
    return RetryingSubmitter(w3, reporter, settings, sleep=sleeper)


@pytest.fixture
def funded(w3, settings, wallets):
    """PONG/PING balances of 1000 tokens for every test wallet, zero allowance."""
    bal = {wl.address: 1000 * 10 ** 18 for wl in wallets}
    w3.eth.set_token(settings.token_in, balances=bal)
    w3.eth.set_token(settings.token_out, balances=bal)
    return w3


def router_address(settings):
    return Web3.to_checksum_address(settings.swap_router)
