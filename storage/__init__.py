"""storage/ -- File ownership, blob persistence, and upload handling for FileVault.

Layer rule: storage/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/. The authenticated owner id arrives as a
plain int from the caller.
"""
