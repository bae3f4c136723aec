"""Archie workflow: document retrieval, knowledge extraction, analysis, context building, ask."""
from .graph import build_archie_graph, create_runner, route_entry
from .services import ArchieServices, create_services

__all__ = [
    "build_archie_graph",
    "create_runner",
    "route_entry",
    "ArchieServices",
    "create_services",
]
