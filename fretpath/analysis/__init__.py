"""Analysis — diagnostics over resolved melody events.

Sub-package containing:
    evaluator  – pitch fidelity, string collisions and tabular reports
"""
