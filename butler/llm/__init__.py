"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts that turn diner messages into structured slot values.
- Call the Groq LLM in JSON mode for extraction, validation and normalisation.
- Graceful fallback to keyword interpretation when the LLM is unavailable or
  returns invalid output.
"""
