"""
Mobile plan catalog and recommendation backend.
"""
