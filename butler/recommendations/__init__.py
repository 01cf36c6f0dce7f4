"""
Recommendation engine.

Responsibilities:
- Filter the restaurant catalog against the collected dining request.
- Score candidates with additive heuristics plus the diner's learned profile.
- Demote recently shown picks so repeated requests surface new places.
- Explain each pick with a few short reasons.
"""
