# harvester/__init__.py
"""
Experience harvester: merges games API data, embedded page JSON and DOM
heuristics into one canonical record per game experience.
"""
