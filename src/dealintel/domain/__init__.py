"""Domain records and errors for deals, leads, and dashboard results.

Pydantic models in ``schemas`` are the only types the scorers and
aggregators accept; ``errors`` holds InvalidDomainValueError for values
outside a record's allowed set.
"""
