"""auth/ -- Users, sessions, and authentication for the Astra docs API.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, documents/, or cache/.
api/ imports from auth/, not the other way around.
"""
