"""Selectors for the lease kernel (read side)."""

from lease_kernel.selectors.lease_selector import LeaseSelector

__all__ = ["LeaseSelector"]
