"""Groups bounded context.

Manages group membership across two independent systems: an external team
provider that owns access control, and a document store holding queryable
group and membership records.
"""
