#!/usr/bin/env python3
"""
Simple example of using the multisig SDK.
"""
import os

from multisig_sdk import LocalSigner, MultisigClient, MultisigError


def main():
    """
    Demonstrate the step-by-step Safe flow.

    This example shows how to:
    1. Initialize the client
    2. Build a Safe transaction at the current Safe nonce
    3. Collect one structured, one raw-hash and one on-chain approval
    4. Aggregate the signatures and execute the transaction
    """
    # Read configuration from environment
    RPC_URL = os.environ.get("RPC_URL", "http://localhost:8545")
    SAFE_ADDRESS = os.environ.get("SAFE_ADDRESS")
    OWNER_KEYS = [k for k in os.environ.get("OWNER_KEYS", "").split(",") if k]
    EXECUTOR_KEY = os.environ.get("EXECUTOR_KEY")

    # Verify configuration
    if not SAFE_ADDRESS:
        print("ERROR: SAFE_ADDRESS environment variable is required")
        return

    if len(OWNER_KEYS) < 3 or not EXECUTOR_KEY:
        print("ERROR: OWNER_KEYS (three comma-separated keys) and EXECUTOR_KEY are required")
        return

    owners = [LocalSigner(k) for k in OWNER_KEYS[:3]]
    client = MultisigClient(
        rpc_url=RPC_URL,
        safe_address=SAFE_ADDRESS,
        signer=LocalSigner(EXECUTOR_KEY)
    )
    print(f"Safe {client.safe_address}: {client.threshold()} of {len(client.owners())} owners")

    # Send 0.001 ETH back to the first owner
    record = client.build(owners[0].address, value=10**15)
    digest = client.digest(record)
    print(f"Safe transaction hash: 0x{digest.hex()} (nonce {record.nonce})")

    try:
        artifacts = [
            client.sign_structured(owners[0], record, digest=digest),
            client.sign_raw_hash(owners[1], digest),
            client.approve_on_chain(owners[2], record, digest=digest),
        ]
        blob = client.aggregate(artifacts)
        print(f"Aggregated {len(blob)} bytes of signatures from {', '.join(blob.signers)}")

        receipt = client.submit(record, blob)
        print(f"Transaction hash: {receipt.tx_hash}")
        print(f"Block number: {receipt.block_number}")
        print(f"Status: {'Success' if receipt.status == 1 else 'Failed'}")

    except MultisigError as e:
        print(f"Error executing Safe transaction at stage {e.stage}: {str(e)}")


if __name__ == "__main__":
    main()
