"""
Knowledge Extraction Prompt Builder.

One prompt per document; the response must be a single JSON object.
"""

EXTRACTION_TEMPLATE = """Extract a knowledge graph from the document "{{documentName}}".

Identify the software entities (services, components, data stores, queues, APIs, libraries,
requirements, design decisions) and the directed relationships between them.

Respond with valid JSON only, in exactly this shape:

{
  "entities": [
    {"name": "...", "type": "...", "description": "...", "properties": {}}
  ],
  "relationships": [
    {"from": "<entity name>", "to": "<entity name>", "type": "...", "properties": {}}
  ]
}

Every relationship endpoint must be the name of an entity in the "entities" list.

DOCUMENT:
{{documentText}}"""

