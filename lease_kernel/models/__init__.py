"""ORM models. Importing this package registers every table on Base.metadata."""

from lease_kernel.models.lease import LeaseModel

__all__ = ["LeaseModel"]
