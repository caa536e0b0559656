"""
Lease services -- the outward surface of the lease lifecycle kernel.

``LeaseApi`` exposes the operations collaborators call; ``cli`` is the
operator entry point for schema setup and the scheduled expiration scan.
"""

from lease_services.lease_api import LeaseApi, build_lease_api

__all__ = ["LeaseApi", "build_lease_api"]
