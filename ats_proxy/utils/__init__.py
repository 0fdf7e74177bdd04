"""
UTILITIES PACKAGE
=================

Helpers used by the API layer (no HTTP, no business logic):

  time_info - iso_timestamp(): current UTC time in the format browsers emit for Date.toISOString().
"""
