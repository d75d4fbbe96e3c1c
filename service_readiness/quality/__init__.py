"""Open-data quality scoring.

Five quality dimensions (completeness, accuracy, consistency,
timeliness, metadata) and the composite readiness aggregator, with
configurable thresholds and rule-driven explanatory text.

Deterministic -- no I/O.
"""
