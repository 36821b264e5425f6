"""auth/ -- Authentication and access control package for the dashboard.

Layer rule: auth/ imports only stdlib + third-party libraries + core/.
It does NOT import from api/, resources/, or interns/.
api/ imports from auth/, not the other way around.
"""
