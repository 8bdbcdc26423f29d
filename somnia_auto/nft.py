# somnia_auto/nft.py
from typing import Any, Dict, List, Optional, Tuple
from web3 import Web3
from .chain import send_and_wait
from .config import Settings
from .report import Reporter
from .util import get_logger, on_error, short, to_checksum, tx_hex

log = get_logger()

CONTRACT_NAME = "NFTCollection"

NFT_SOURCE = """// SPDX-License-Identifier: MIT
pragma solidity ^0.8.19;

contract NFTCollection {
    address public owner;
    string public name;
    string public symbol;
    uint256 public maxSupply;
    uint256 public totalSupply;

    mapping(uint256 => address) private _owners;
    mapping(address => uint256) private _balances;
    mapping(uint256 => string) private _tokenURIs;

    event Transfer(address indexed from, address indexed to, uint256 indexed tokenId);
    event Mint(address indexed to, uint256 indexed tokenId, string tokenURI);
    event Burn(address indexed from, uint256 indexed tokenId);

    modifier onlyOwner() {
        require(msg.sender == owner, "Not the contract owner");
        _;
    }

    modifier tokenExists(uint256 tokenId) {
        require(_owners[tokenId] != address(0), "Token doesn't exist");
        _;
    }

    constructor(string memory _name, string memory _symbol, uint256 _maxSupply) {
        owner = msg.sender;
        name = _name;
        symbol = _symbol;
        maxSupply = _maxSupply;
    }

    function mint(address to, uint256 tokenId, string memory uri) public onlyOwner {
        require(to != address(0), "Cannot mint to zero address");
        require(_owners[tokenId] == address(0), "Token already exists");
        require(totalSupply < maxSupply, "Maximum supply reached");

        _owners[tokenId] = to;
        _balances[to]++;
        _tokenURIs[tokenId] = uri;
        totalSupply++;

        emit Transfer(address(0), to, tokenId);
        emit Mint(to, tokenId, uri);
    }

    function burn(uint256 tokenId) public tokenExists(tokenId) {
        address tokenOwner = _owners[tokenId];
        require(msg.sender == tokenOwner || msg.sender == owner, "Not authorized to burn");

        delete _tokenURIs[tokenId];
        delete _owners[tokenId];
        _balances[tokenOwner]--;
        totalSupply--;

        emit Transfer(tokenOwner, address(0), tokenId);
        emit Burn(tokenOwner, tokenId);
    }

    function tokenURI(uint256 tokenId) public view tokenExists(tokenId) returns (string memory) {
        return _tokenURIs[tokenId];
    }

    function ownerOf(uint256 tokenId) public view tokenExists(tokenId) returns (address) {
        return _owners[tokenId];
    }

    function balanceOf(address _owner) public view returns (uint256) {
        require(_owner != address(0), "Zero address has no balance");
        return _balances[_owner];
    }
}
"""

_compiled: Dict[str, Tuple[List[Dict[str, Any]], str]] = {}


def compile_nft_collection(solc_version: str) -> Tuple[List[Dict[str, Any]], str]:
    """(abi, bytecode) for NFTCollection, compiled once per solc version."""
    if solc_version in _compiled:
        return _compiled[solc_version]

    from solcx import compile_standard, get_installed_solc_versions, install_solc

    if solc_version not in {str(v) for v in get_installed_solc_versions()}:
        log.info(f"installing solc {solc_version}")
        install_solc(solc_version)

    std = {
        "language": "Solidity",
        "sources": {f"{CONTRACT_NAME}.sol": {"content": NFT_SOURCE}},
        "settings": {"outputSelection": {"*": {"*": ["abi", "evm.bytecode.object"]}}},
    }
    out = compile_standard(std, solc_version=solc_version)
    art = out["contracts"][f"{CONTRACT_NAME}.sol"][CONTRACT_NAME]
    abi = art["abi"]
    bytecode = "0x" + art["evm"]["bytecode"]["object"]
    _compiled[solc_version] = (abi, bytecode)
    return abi, bytecode


def _base_tx(w3: Web3, wallet, settings: Settings) -> dict:
    return {
        "from": wallet.address,
        "value": 0,
        "gas": settings.nft_gas,
        "gasPrice": w3.eth.gas_price,
        "chainId": settings.chain_id,
    }


def deploy_nft(w3: Web3, wallet, settings: Settings, reporter: Reporter,
               name: str, symbol: str, max_supply: int) -> Optional[Dict[str, Any]]:
    w = wallet.index
    try:
        abi, bytecode = compile_nft_collection(settings.solc_version)
        reporter.log(f"Preparing deployment for wallet {w}...")
        Contract = w3.eth.contract(abi=abi, bytecode=bytecode)
        tx = Contract.constructor(name, symbol, int(max_supply)).build_transaction(_base_tx(w3, wallet, settings))
        reporter.log("Sending deployment transaction...")
        receipt = send_and_wait(w3, tx, wallet, settings.receipt_timeout)
        if receipt["status"]:
            addr = receipt["contractAddress"]
            reporter.success("Success: NFT collection created!", panel=f"Wallet {w}: NFT collection created!")
            reporter.log(f"  Contract Address: {addr}")
            log.info(f"deploy {CONTRACT_NAME} address={short(addr)} tx={short(tx_hex(receipt['transactionHash']))}")
            return {"address": addr, "abi": abi, "tx": tx_hex(receipt["transactionHash"])}
        reporter.error("Error: NFT deployment failed. Transaction status is false.",
                       panel=f"Wallet {w}: NFT deployment failed")
        return None
    except Exception as e:
        on_error(log, f"nft deploy failed for wallet {w}", e)
        reporter.error(f"Error: NFT deployment failed for wallet {w}: {e}",
                       panel=f"Wallet {w}: NFT deployment failed: {e}")
        return None


def mint_nft(w3: Web3, wallet, settings: Settings, reporter: Reporter,
             contract_address: str, token_id: int, token_uri: str) -> bool:
    w = wallet.index
    try:
        abi, _ = compile_nft_collection(settings.solc_version)
        c = w3.eth.contract(address=to_checksum(w3, contract_address), abi=abi)
        reporter.log(f"Preparing mint transaction for wallet {w}...")
        tx = c.functions.mint(wallet.address, int(token_id), token_uri).build_transaction(_base_tx(w3, wallet, settings))
        reporter.log("Sending mint transaction...")
        receipt = send_and_wait(w3, tx, wallet, settings.receipt_timeout)
        if receipt["status"]:
            reporter.success(f"Success: NFT minted! Token ID: {token_id}", panel=f"Wallet {w}: NFT minted!")
            reporter.log(f"  Transaction Hash: {settings.tx_url(tx_hex(receipt['transactionHash']))}")
            return True
        reporter.error("Error: NFT mint failed. Transaction status is false.", panel=f"Wallet {w}: NFT mint failed")
        return False
    except Exception as e:
        on_error(log, f"nft mint failed for wallet {w}", e)
        reporter.error(f"Error: NFT mint failed for wallet {w}: {e}", panel=f"Wallet {w}: NFT mint failed: {e}")
        return False


def burn_nft(w3: Web3, wallet, settings: Settings, reporter: Reporter,
             contract_address: str, token_id: int) -> bool:
    w = wallet.index
    try:
        abi, _ = compile_nft_collection(settings.solc_version)
        c = w3.eth.contract(address=to_checksum(w3, contract_address), abi=abi)
        reporter.log(f"Preparing burn transaction for wallet {w}...")
        reporter.log(f"Wallet Address: {wallet.address}")

        # a read failure here only means the burn will probably revert
        try:
            token_owner = c.functions.ownerOf(int(token_id)).call()
            reporter.log(f"Info: Token ID {token_id} is owned by {token_owner}")
            if str(token_owner).lower() != wallet.address.lower():
                reporter.warn("Warning: The current wallet is NOT the owner of this token. The transaction will likely fail.")
        except Exception as owner_err:
            reporter.warn(f"Warning: Could not get owner of token {token_id}. It may not exist. Error: {owner_err}")

        tx = c.functions.burn(int(token_id)).build_transaction(_base_tx(w3, wallet, settings))
        reporter.log("Sending burn transaction...")
        receipt = send_and_wait(w3, tx, wallet, settings.receipt_timeout)
        if receipt["status"]:
            reporter.success(f"Success: NFT burned! Token ID: {token_id}", panel=f"Wallet {w}: NFT burned!")
            reporter.log(f"  Transaction Hash: {settings.tx_url(tx_hex(receipt['transactionHash']))}")
            return True
        reporter.error("Error: NFT burn failed. Transaction status is false.", panel=f"Wallet {w}: NFT burn failed")
        return False
    except Exception as e:
        on_error(log, f"nft burn failed for wallet {w}", e)
        reporter.error(f"Error: NFT burn failed for wallet {w}: {e}", panel=f"Wallet {w}: NFT burn failed: {e}")
        return False


def record_contract(path: str, address: str):
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{address}\n")
