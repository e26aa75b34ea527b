#!/usr/bin/env python3
"""Example usage of the Ceph provider against a live Ceph Manager API."""

import asyncio
import os
import sys

from ceph_provider.ceph.errors import CephProviderError
from ceph_provider.core.config import ProviderSettings
from ceph_provider.models.auth import AuthModel
from ceph_provider.models.pool import PoolModel
from ceph_provider.provider import Provider


async def run(provider: Provider) -> None:
    """Walk one identity and one pool through their lifecycle."""
    await provider.configure()
    print(f"Connected to {provider.client.endpoint}\n")

    auth = provider.resource("ceph_auth")
    pools = provider.resource("ceph_pool")

    # Example 1: Create an identity with a generated key
    print("1. Creating client.myapp...")
    plan = AuthModel(entity="client.myapp", caps={"mon": "allow r", "osd": "allow rw pool=myapp"})
    result = await auth.create(plan)
    state = result.state
    print(f"   Capabilities: {state.caps}\n")

    # Example 2: Create the pool the identity may use
    print("2. Creating pool 'myapp'...")
    result = await pools.create(PoolModel(name="myapp", pool_type="replicated", size=3, pg_num=32))
    pool = result.state
    print(f"   Pool id: {pool.pool_id}, crush rule: {pool.crush_rule}\n")

    # Example 3: Widen the capabilities in place
    print("3. Updating capabilities...")
    new_plan = AuthModel(entity="client.myapp", caps={"mon": "allow r", "osd": "allow rwx pool=myapp"})
    result = await auth.update(state, new_plan)
    state = result.state
    print(f"   Updated capabilities: {state.caps}\n")

    # Example 4: Refresh; a missing object drops out of state
    print("4. Refreshing the identity...")
    result = await auth.read(state)
    for warning in result.diagnostics.warnings:
        print(f"   Warning: {warning.summary}: {warning.detail}")
    print(f"   Still present: {not result.removed}\n")

    # Example 5: Look up a key without managing it
    print("5. Looking up client.admin...")
    result = await provider.lookup("auth", "client.admin")
    print(f"   Capabilities: {result.state.caps}\n")

    # Example 6: Clean up
    print("6. Deleting pool and identity...")
    await pools.delete(pool)
    await auth.delete(state)
    print("   Deleted successfully\n")


def main() -> None:
    """Run examples."""
    endpoint = os.environ.get("CEPH_ENDPOINT", "https://localhost:8443")
    token = os.environ.get("CEPH_TOKEN")

    if not token:
        print("Error: CEPH_TOKEN environment variable not set", file=sys.stderr)
        print("Usage: CEPH_TOKEN=your-token python examples/provider_usage.py", file=sys.stderr)
        sys.exit(1)

    settings = ProviderSettings(endpoint=endpoint, token=token)

    print("=== Ceph Provider Examples ===\n")
    try:
        asyncio.run(run(Provider(settings)))
    except CephProviderError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    print("=== Examples completed ===")


if __name__ == "__main__":
    main()
