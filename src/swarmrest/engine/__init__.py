"""Request-to-object-operation engine.

Parsing (parser, extractor), per-request delivery state (sink, versions)
and the open/apply/close orchestrator.
"""

from swarmrest.engine.extractor import extract
from swarmrest.engine.orchestrator import ObjectOrchestrator
from swarmrest.engine.parser import parse_mutation_path, parse_read_path
from swarmrest.engine.sink import SyntheticSink
from swarmrest.engine.versions import VersionGenerator, session_scope

__all__ = [
    "ObjectOrchestrator",
    "SyntheticSink",
    "VersionGenerator",
    "extract",
    "parse_mutation_path",
    "parse_read_path",
    "session_scope",
]
