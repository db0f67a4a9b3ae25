"""
Per-user plan bookmarks.
"""
