"""
Document Retrieval Node

Reads the input documents for the thread's directory into the ``inputs``
channel. Sync node (local file I/O).
"""
import logging

from langsmith import traceable

from ..services import ArchieServices
from ..state import ArchieState

logger = logging.getLogger(__name__)


@traceable(name="document_retrieval", tags=["io", "documents"])
def document_retrieval_node(state: ArchieState, services: ArchieServices) -> dict:
    """
    Load ``*.txt``/``*.md`` files from ``input_directory_path``.

    Missing directory or unreadable files are logged and skipped; the node
    never fails the thread.

    Returns:
        State updates:
        - inputs: {file name: text} (union-merged into existing inputs)
    """
    directory = state.get("input_directory_path")
    if not directory:
        logger.warning("input_directory_path is not set; skipping document retrieval")
        return {"inputs": {}}

    inputs = services.documents.read(directory)
    logger.info(f"📄 Retrieved {len(inputs)} documents from {directory}")
    return {"inputs": inputs}
