"""
Archie Workflow Nodes.

Exports all workflow node functions for graph assembly.
"""
from .document_retrieval import document_retrieval_node
from .knowledge_extraction import knowledge_extraction_node
from .analysis import analysis_node
from .context_building import context_building_node
from .echo import echo_node

__all__ = [
    "document_retrieval_node",
    "knowledge_extraction_node",
    "analysis_node",
    "context_building_node",
    "echo_node",
]
