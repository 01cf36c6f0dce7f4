"""
Restaurant butler.

A conversational agent that collects dining preferences turn by turn,
resolves them against a fixed restaurant catalog and recommends where to eat.
"""
