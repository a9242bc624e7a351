"""
swarm-rest: a REST surface over a versioned, replicated object host.

Clients read object snapshots with ``GET /Type#id#id2/Type2#id3`` and submit
operations with ``POST /Type#id.op`` plus a JSON body.
"""

__version__ = "0.1.0"
