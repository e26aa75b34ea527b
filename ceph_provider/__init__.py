"""Desired-state reconciliation of Ceph cluster objects through the Ceph Manager API."""

__version__ = "0.1.0"
