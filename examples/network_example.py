#!/usr/bin/env python3
"""
Example of using MultisigClient with network configuration.
"""
import logging
import os

from multisig_sdk import ExecutionRevertedError, LocalSigner, MultisigClient, NetworkConfig

ERC20_TRANSFER_ABI = [
    {
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]


def main():
    """
    Demonstrate a token transfer from a Safe configured by network name.

    The Safe address is read from ``<NETWORK>_SAFE_ADDRESS`` and the RPC URL
    from ``<NETWORK>_RPC_URL`` (or the packaged default).
    """
    logging.basicConfig(level=logging.INFO)

    network = os.environ.get("NETWORK", "sepolia")
    OWNER_KEYS = [k for k in os.environ.get("OWNER_KEYS", "").split(",") if k]
    EXECUTOR_KEY = os.environ.get("EXECUTOR_KEY")
    TOKEN_ADDRESS = os.environ.get("TOKEN_ADDRESS")
    RECIPIENT = os.environ.get("RECIPIENT")

    if not OWNER_KEYS or not EXECUTOR_KEY or not TOKEN_ADDRESS or not RECIPIENT:
        print("ERROR: OWNER_KEYS, EXECUTOR_KEY, TOKEN_ADDRESS and RECIPIENT are required")
        return

    # Available networks
    print("Available networks:")
    for network_name in NetworkConfig.load_networks().keys():
        print(f"  - {network_name}")
    print()

    client = MultisigClient.from_network(network, signer=LocalSigner(EXECUTOR_KEY))

    # Verify chain ID
    client.assert_chain_id()
    print(f"Connected to network: {network}")

    token = client.w3.eth.contract(address=TOKEN_ADDRESS, abi=ERC20_TRANSFER_ABI)
    signers = [LocalSigner(k) for k in OWNER_KEYS]

    try:
        receipt = client.execute_contract_call_with_signers(
            token,
            "transfer",
            [RECIPIENT, 10**18],
            signers
        )
        print(f"Transfer executed in block {receipt.block_number}: {receipt.tx_hash}")
    except ExecutionRevertedError as e:
        print(f"Safe rejected the transaction: {e.reason}")


if __name__ == "__main__":
    main()
