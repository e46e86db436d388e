"""Domain Event definitions.

Represents significant occurrences in the request pipeline (calls, retries,
deferrals, cache hits) that observers may react to.
"""
