"""fretpath — assign fretted-instrument positions to musical events.

Packages:
    tab_engine  – candidate index, cost model, per-event search, path DP
    melody      – fill-in, transposition and string-shift adapters
    analysis    – diagnostics over resolved output
"""
