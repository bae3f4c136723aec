"""
Context Building Prompt.

Produces a markdown context document for a named system from its input
documents, in the same <agent>/<system> format as the analysis conversation.
"""

CONTEXT_BUILD_TEMPLATE = """Build a context document for the system "{{systemName}}".

Use the input documents below and the existing system context. Describe:
- the purpose of the system
- its main components and their responsibilities
- the data stores and external integrations
- the key flows between components
- notable design decisions and open questions

Put the complete markdown document in the <agent> part.
Put every entity and relationship you identified in the <system> part.

Existing system context:
{{systemContext}}

Input documents:
{{fileSummaries}}"""
