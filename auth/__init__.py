"""auth/ -- Authentication and session core for sessionguard.

Credential store, token issuer, revocation registry, session verifier and
the register/login/logout flow controller.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
