"""auth/ -- Authentication and session authorization package for FileVault.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or storage/.
api/ imports from auth/, not the other way around.
"""
