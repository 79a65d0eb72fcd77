"""
OASTWatch Collaborator Demo

Registers an address with a public correlation server, triggers a DNS lookup
against it and prints the interactions that come back.
"""

import socket
import time

import oastwatch
from oastwatch.core.exceptions import OASTWatchException


def trigger_lookup(address: str) -> None:
    """Resolve the collaborator address so the server records a DNS interaction."""
    try:
        socket.gethostbyname(address)
    except socket.gaierror:
        # The server records the query even when resolution fails locally
        pass


def main():
    print("=" * 70)
    print("OASTWatch Collaborator Demo")
    print("=" * 70)

    print("\n1. Registering with a correlation server...")
    try:
        client = oastwatch.build({"timeout": 15})
    except OASTWatchException as e:
        print(f"   ✗ {e}")
        return
    print(f"   ✓ Address: {client.address()}")

    with client:
        print("\n2. Triggering a DNS lookup...")
        trigger_lookup(client.address())

        print("\n3. Polling for interactions...")
        for attempt in range(1, 4):
            time.sleep(5)
            entries = client.poll_entries()
            print(f"   Poll {attempt}: {len(entries)} interaction(s)")
            for entry in entries:
                record = entry.fields()
                print(f"   - {entry.kind.value}: from {record.get('remote_address', '-')}")

        print("\n4. Deregistering...")
    print(f"   ✓ Session state: {client.state.value}")


if __name__ == "__main__":
    main()
