"""Settlement detail report enricher.

Reads a settlement CSV report, looks up the home transaction id for every
transfer in Redis and writes the enriched report back out, keeping section
header rows where they were.
"""

__version__ = "0.1.0"
