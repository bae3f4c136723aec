"""
Analysis Conversation Prompts.

The system prompt fixes the two-part response format parsed by
``parse_llm_response``:

    <agent> reply shown to the user </agent>
    <system> {"entities": [...], "relationships": [...]} </system>

Turn prompts (initial / followup / final) are ``{{placeholder}}`` templates
rendered by the PromptService so they can be overridden from a config file.
"""

BASE_SYSTEM_PROMPT = """
You are Archie, an AI assistant specialized in software architecture analysis.

# STRICT OUTPUT INSTRUCTIONS

Divide every response into two parts, marked by tags: <agent> ... </agent> and <system> ... </system>.
The <agent> part is the complete reply to the user's request.
The <system> part lists what you learned about the analyzed system, as JSON of the form:

{
  "entities": [],
  "relationships": []
}

## System Context Definition

System memory is a directed graph. Nodes are entities that play a role in the system or its development:
services, data stores, message queues, web pages, API gateways, libraries, and also development artifacts
such as requirement documents, design documents, design decisions (ADRs) or tickets.

Each entity has:
- name: mandatory, unique within the system
- type: mandatory, the class of the entity (may change on update)
- description: may be empty
- tags: list of non-empty strings; updates add tags, never remove them
- properties: key/value map; updates add keys and overwrite matching ones

Relationships are typed directed edges between entities. Each relationship has:
- from: mandatory, name of the source entity
- to: mandatory, name of the target entity
- type: mandatory, the class of relationship
- properties: key/value map; updates add keys and overwrite matching ones
""".strip()

SYSTEM_CONTEXT_HEADER = "System Context (previous knowledge about this system):"

INITIAL_TEMPLATE = (
    "Analyze the user query based on the provided files. Files: [{{fileList}}]. "
    "User's initial query: \"{{query}}\". What is the primary goal for this analysis? "
    "Ask clarifying questions if needed.\n\n"
    "File contents:\n{{fileSummaries}}"
)

FOLLOWUP_TEMPLATE = (
    "Continue the analysis based on the latest user message in the history. "
    "Files provided: [{{fileList}}]. Ask further clarifying questions or provide "
    "analysis as appropriate."
)

FINAL_TEMPLATE = """Based on the following conversation history: {{history}} and the context of files: [{{fileList}}], generate a final analysis summary for the user. The summary should include (if possible based on the conversation):
- Identified assumptions
- Identified main components involved
- Discussed alternatives with tradeoffs
- Summary of design decisions reached and why
- A list of any open questions remaining.
Provide only the summary content."""


def build_system_prompt(context_string: str) -> str:
    """Base instructions plus the current memory snapshot, when it holds anything."""
    prompt = BASE_SYSTEM_PROMPT
    if context_string and context_string.strip() not in ("", "{}"):
        prompt += f"\n\n{SYSTEM_CONTEXT_HEADER}\n{context_string}"
    return prompt
