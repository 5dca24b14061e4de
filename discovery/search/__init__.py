"""
Establishment search and ranking.

Responsibilities:
- Normalise raw query parameters into typed, validated search requests.
- Resolve geographic candidates for radius, bounds and no-location modes.
- Narrow candidates by attribute filters and free text with synonyms.
- Rank deterministically and paginate into response payloads.
"""
