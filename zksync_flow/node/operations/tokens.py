from concurrent.futures import ThreadPoolExecutor

from zksync_flow.client import ZkSyncClient
from zksync_flow.core.units import format_units, parse_units
from zksync_flow.manage_contracts.token_contracts import ERC20Contract, ERC721Contract
from zksync_flow.node.operations.common import (
    paymaster_params_for,
    receipt_status,
    send_and_wait,
    token_address,
)
from zksync_flow.node.parameters import NodeParameters


def _erc20(client: ZkSyncClient, params: NodeParameters) -> ERC20Contract:
    return ERC20Contract(client.web3, token_address(client, params))


def _erc721(client: ZkSyncClient, params: NodeParameters) -> ERC721Contract:
    return ERC721Contract(client.web3, params.address("contractAddress", "contract address"))


def get_token_balance(client: ZkSyncClient, params: NodeParameters) -> dict:
    token = _erc20(client, params)
    address = params.address("address")
    balance = token.balance_of(address)
    decimals = token.decimals()
    return {
        "address": address,
        "contractAddress": token.contract_address,
        "balanceRaw": str(balance),
        "balance": format_units(balance, decimals),
        "decimals": decimals,
    }


def get_token_info(client: ZkSyncClient, params: NodeParameters) -> dict:
    token = _erc20(client, params)
    with ThreadPoolExecutor(max_workers=4) as executor:
        name = executor.submit(token.name)
        symbol = executor.submit(token.symbol)
        decimals = executor.submit(token.decimals)
        total_supply = executor.submit(token.total_supply)
        info = {
            "name": name.result(),
            "symbol": symbol.result(),
            "decimals": decimals.result(),
            "totalSupply": total_supply.result(),
        }
    return {
        "contractAddress": token.contract_address,
        "name": info["name"],
        "symbol": info["symbol"],
        "decimals": info["decimals"],
        "totalSupply": str(info["totalSupply"]),
        "totalSupplyFormatted": format_units(info["totalSupply"], info["decimals"]),
    }


def transfer_token(client: ZkSyncClient, params: NodeParameters) -> dict:
    wallet = client.require_wallet("transfer tokens")
    token = _erc20(client, params)
    to = params.address("toAddress", "recipient address")
    token_amount = str(params.require("tokenAmount"))
    amount = parse_units(token_amount, token.decimals())

    tx_hash, receipt = send_and_wait(
        client,
        wallet,
        token.contract_address,
        data=token.encode_transfer(to, amount),
        paymaster_params=paymaster_params_for(client, params),
    )
    return {
        "hash": tx_hash,
        "from": wallet.address,
        "to": to,
        "amount": token_amount,
        "status": receipt_status(receipt),
    }


def approve_token(client: ZkSyncClient, params: NodeParameters) -> dict:
    wallet = client.require_wallet("approve tokens")
    token = _erc20(client, params)
    spender = params.address("spenderAddress", "spender address")
    token_amount = str(params.require("tokenAmount"))
    amount = parse_units(token_amount, token.decimals())

    tx_hash, receipt = send_and_wait(
        client,
        wallet,
        token.contract_address,
        data=token.encode_approve(spender, amount),
        paymaster_params=paymaster_params_for(client, params),
    )
    return {
        "hash": tx_hash,
        "owner": wallet.address,
        "spender": spender,
        "amount": token_amount,
        "status": receipt_status(receipt),
    }


def get_allowance(client: ZkSyncClient, params: NodeParameters) -> dict:
    token = _erc20(client, params)
    owner = params.address("ownerAddress", "owner address")
    spender = params.address("spenderAddress", "spender address")
    allowance = token.allowance(owner, spender)
    return {
        "owner": owner,
        "spender": spender,
        "allowanceRaw": str(allowance),
        "allowance": format_units(allowance, token.decimals()),
    }


def get_nft_balance(client: ZkSyncClient, params: NodeParameters) -> dict:
    nft = _erc721(client, params)
    address = params.address("address")
    return {
        "address": address,
        "contractAddress": nft.contract_address,
        "balance": str(nft.balance_of(address)),
    }


def get_nft_owner(client: ZkSyncClient, params: NodeParameters) -> dict:
    nft = _erc721(client, params)
    token_id = params.integer("tokenId")
    return {
        "contractAddress": nft.contract_address,
        "tokenId": str(token_id),
        "owner": nft.owner_of(token_id),
    }


def get_nft_token_uri(client: ZkSyncClient, params: NodeParameters) -> dict:
    nft = _erc721(client, params)
    token_id = params.integer("tokenId")
    return {
        "contractAddress": nft.contract_address,
        "tokenId": str(token_id),
        "tokenUri": nft.token_uri(token_id),
    }


def transfer_nft(client: ZkSyncClient, params: NodeParameters) -> dict:
    wallet = client.require_wallet("transfer NFTs")
    nft = _erc721(client, params)
    to = params.address("toAddress", "recipient address")
    token_id = params.integer("tokenId")

    tx_hash, receipt = send_and_wait(
        client,
        wallet,
        nft.contract_address,
        data=nft.encode_transfer_from(wallet.address, to, token_id),
        paymaster_params=paymaster_params_for(client, params),
    )
    return {
        "hash": tx_hash,
        "from": wallet.address,
        "to": to,
        "tokenId": str(token_id),
        "status": receipt_status(receipt),
    }
