"""audit/ -- Append-only audit trail of admin mutations.

Layer rule: audit/ imports from auth/ (for the Admin actor type) and core/.
It does NOT import from api/ or content/.
"""
