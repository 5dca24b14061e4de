"""
Establishment catalog.

Responsibilities:
- Convert raw establishment exports into the canonical catalog snapshot.
- Load the snapshot into memory and prepare it for searching.
- Derive static opening-hours tags from stored weekly schedules.
"""
