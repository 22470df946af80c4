"""documents/ -- Document records, persistence, and upload storage.

Layer rule: documents/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, auth/, or cache/.
"""
