"""
Echo Node

Single-turn ``ask`` flow: replies with the input text.
"""
import logging

from langsmith import traceable

from ..state import ArchieState

logger = logging.getLogger(__name__)


@traceable(name="echo", tags=["ask"])
def echo_node(state: ArchieState) -> dict:
    response = f"Echo: {state.get('user_input', '')}"
    logger.info(f"Echo response: {response}")
    return {"response": response}
