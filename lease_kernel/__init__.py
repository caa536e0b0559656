"""
Lease Kernel

The lease lifecycle and dual-signature state machine of the rental
marketplace:
- Validated creation of draft leases
- Independent landlord/tenant signing with write-once signatures
- Optimistic-concurrency writes with bounded retry (no lost updates)
- Date-based expiration detection and self-healing expiry
- Explicit, one-way termination
"""

__version__ = "0.1.0"
