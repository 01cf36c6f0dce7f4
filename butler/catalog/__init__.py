"""
Restaurant catalog.

Responsibilities:
- Load the static restaurant list once and keep it in memory.
- Look restaurants up by id and browse them by area, cuisine, price or dietary tag.
- Expose the distinct areas, cuisines, vibes and dietary tags the rest of the
  system uses to constrain free-text values.
"""
