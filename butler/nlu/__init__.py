"""
Natural-language interpretation boundary.

Responsibilities:
- Define the Interpreter contract the dialogue controllers depend on.
- Provide a deterministic keyword interpreter used when no LLM is available.
- Resolve relative dates, clock times and party sizes from short replies.
"""
