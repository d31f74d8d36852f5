"""bduk/ -- Gigabit broadband availability per street, from BDUK premises data.

Layer rule: bduk/ imports only stdlib + third-party libraries and core/.
It does NOT import from api/ or web/.
"""
