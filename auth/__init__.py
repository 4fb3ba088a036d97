"""auth/ -- Authentication and authorization package for the admin backend.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, audit/, or content/.
api/ imports from auth/, not the other way around.
"""
