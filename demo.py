#!/usr/bin/env python3
"""
Walkthrough of a 2-of-3 multi-signature wallet
"""

from multisig.errors import AlreadyExecuted, CustodyError, InsufficientApprovals, TransferFailed
from multisig.identity import SignerKey, generate_signers
from multisig.logging_config import configure_logging
from multisig.wallet import MultiSigWallet


def main():
    configure_logging("WARNING")

    print("=" * 60)
    print("🏦 MULTI-SIGNATURE WALLET - DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Generating signers")
    print("-" * 40)

    keys = generate_signers(3)
    names = ["Alice", "Bob", "Carol"]
    signers = [key.address() for key in keys]
    for name, address in zip(names, signers):
        print(f"✅ {name}: {address}")

    recipient = SignerKey().address()
    print(f"✅ Recipient: {recipient}")
    print()

    # Step 2: Create wallet
    print("🏗️  STEP 2: Creating wallet")
    print("-" * 40)

    wallet = MultiSigWallet(signers, threshold=2)
    wallet.events.subscribe(lambda event: print(f"   📣 {event.name}: {event}"))
    wallet.receive(signers[0], 10)

    print(f"✅ Wallet ID: {wallet.wallet_id}")
    print(f"✅ Balance: {wallet.balance()} units")
    print(f"✅ Rules: {wallet.threshold()}-of-{wallet.signer_count()} approvals required")
    print()

    # Step 3: Submit and approve
    print("📝 STEP 3: Submitting and approving")
    print("-" * 40)

    tx_id = wallet.submit_transaction(signers[0], recipient, 1, "0x")
    print(f"✅ Submitted transaction {tx_id} ({wallet.transaction_count()} total)")

    wallet.approve_transaction(signers[1], tx_id)
    print(f"✅ Bob approved: {wallet.approvals(tx_id, signers[1])}")

    try:
        wallet.execute_transaction(recipient, tx_id)
    except InsufficientApprovals as e:
        print(f"❌ Execution refused: {e}")

    wallet.approve_transaction(signers[0], tx_id)
    print("✅ Alice approved")
    print()

    # Step 4: Execute
    print("🚀 STEP 4: Executing")
    print("-" * 40)

    wallet.execute_transaction(recipient, tx_id)
    print(f"✅ Executed, balance now {wallet.balance()} units")

    for attempt in (lambda: wallet.execute_transaction(recipient, tx_id),
                    lambda: wallet.approve_transaction(signers[2], tx_id)):
        try:
            attempt()
        except AlreadyExecuted as e:
            print(f"❌ Replay refused: {e}")
    print()

    # Step 5: Failed transfer and retry
    print("🔁 STEP 5: Rollback on failed transfer")
    print("-" * 40)

    big_tx = wallet.submit_transaction(signers[2], recipient, 50)
    wallet.approve_transaction(signers[1], big_tx)
    wallet.approve_transaction(signers[2], big_tx)

    try:
        wallet.execute_transaction(recipient, big_tx)
    except TransferFailed as e:
        print(f"❌ {e}")
    print(f"   Still pending: {not wallet.get_transaction(big_tx).executed}")

    wallet.receive(signers[1], 50)
    try:
        wallet.execute_transaction(recipient, big_tx)
        print(f"✅ Retried after funding, balance now {wallet.balance()} units")
    except CustodyError as e:
        print(f"❌ Retry failed: {e}")

    print()
    print("=" * 60)
    print("🎉 DEMO COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
