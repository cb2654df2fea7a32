"""auth/ -- Credential storage, session tokens and the auth guard for StudyHub.

Layer rule: auth/ imports only stdlib + third-party libraries + core/.
It does NOT import from api/ or materials/.
api/ imports from auth/, not the other way around.
"""
