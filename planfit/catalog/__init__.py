"""
Plan catalog.

Responsibilities:
- Load seed plans and diagnosis questions into memory.
- Answer filtered candidate lookups for the diagnosis pipeline.
- Serve paged listings, plan detail and similar-plan lookups for the API.
"""
