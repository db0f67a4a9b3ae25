"""
Plan diagnosis engine.

Responsibilities:
- Normalize free-form quiz answers into usage, budget and age signals.
- Narrow the catalog to eligible candidate plans.
- Score and rank candidates with explainable reasons.
- Persist exactly one result per diagnosis session.
"""
