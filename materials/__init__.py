"""materials/ -- The study-material catalog and its upload directory.

Layer rule: materials/ imports only stdlib + core/.
It does NOT import from api/ or auth/; materials are not gated by auth.
"""
