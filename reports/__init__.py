"""reports/ -- Missing-identifier reports submitted by users.

Layer rule: reports/ imports only stdlib + third-party libraries and core/.
It does NOT import from api/ or web/.
"""
