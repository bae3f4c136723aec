"""
Archie Flow Configuration

Constants for flow routing, conversation control and output files.
"""
import os


# ============================================================================
# Flow Tags (value of the ``current_flow`` channel)
# ============================================================================

FLOW_ANALYZE = "analyze"
FLOW_BUILD_CONTEXT = "build_context"
FLOW_ASK = "ask"

ANALYSIS_KEYWORDS = ("analyze", "analysis", "review requirement", "start analysis")
"""Free-text fallback routing when no flow tag is given"""

ECHO_PREFIX = "echo"


# ============================================================================
# Conversation Control
# ============================================================================

TERMINATION_PHRASES = tuple(
    phrase.strip().upper()
    for phrase in os.getenv("ANALYSIS_TERMINATION_PHRASES", "SOLUTION APPROVED,DONE,OKAY BYE").split(",")
    if phrase.strip()
)
"""
Case-insensitive substrings that end the analysis conversation.

Containment match: "I'm done here" ends the conversation, as does
"okay bye then".
"""

FINAL_AGENT_MESSAGE = "Okay, generating the final solution description."
"""Agent turn appended to history when the conversation ends"""

DEFAULT_ANALYSIS_QUERY = (
    "Analyze the input files and provide a comprehensive overview of the system "
    "architecture, including main components, design patterns, and key relationships "
    "between modules."
)


# ============================================================================
# Prompt Inputs
# ============================================================================

CONTENT_TRUNCATION_LIMIT = int(os.getenv("CONTENT_TRUNCATION_LIMIT", "1000"))
"""Per-file character limit when summarizing inputs into a prompt"""

DEFAULT_ENTITY_TYPE = "concept"
"""Entity type used when the extractor does not provide one"""


# ============================================================================
# Output Files
# ============================================================================

ANALYSIS_OUTPUT_FILE = "analysis_result.md"
"""Written into the inputs directory when an analysis completes"""

CONTEXT_OUTPUT_SUFFIX = "_context.md"
"""Context-building output file: <system_name>_context.md"""


# ============================================================================
# Prompt Registry Keys
# ============================================================================

ANALYSIS_AGENT = "AnalysisAgent"
CONTEXT_BUILDING_AGENT = "ContextBuildingAgent"
EXTRACTION_AGENT = "KnowledgeExtraction"


assert TERMINATION_PHRASES, "ANALYSIS_TERMINATION_PHRASES must not be empty"
assert CONTENT_TRUNCATION_LIMIT > 0, "CONTENT_TRUNCATION_LIMIT must be positive"
