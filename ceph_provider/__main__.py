"""Allow ``python -m ceph_provider``."""

from ceph_provider.cli import main

main()
