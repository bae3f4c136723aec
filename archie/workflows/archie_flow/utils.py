"""
Helpers shared by Archie nodes: prompt inputs, structured response parsing
and termination detection.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import CONTENT_TRUNCATION_LIMIT, TERMINATION_PHRASES

logger = logging.getLogger(__name__)

AGENT_TAG = re.compile(r"<agent>(.*?)</agent>", re.DOTALL)
SYSTEM_TAG = re.compile(r"<system>(.*?)</system>", re.DOTALL)


def summarize_files(files: Optional[Mapping[str, str]]) -> str:
    """
    Concatenate file contents for a prompt, truncating each file.

    Each file renders as ``--- File: <name> ---`` followed by its content
    (cut at CONTENT_TRUNCATION_LIMIT chars with a trailing "...").
    """
    if not files:
        return "No files provided."

    summaries = []
    for file_path, content in files.items():
        if len(content) > CONTENT_TRUNCATION_LIMIT:
            content = content[:CONTENT_TRUNCATION_LIMIT] + "..."
        summaries.append(f"--- File: {Path(file_path).name} ---\n{content}")
    return "\n\n".join(summaries)


def file_list(files: Optional[Mapping[str, str]]) -> str:
    return ", ".join(Path(p).name for p in (files or {})) or "None"


def user_is_done(message: str) -> bool:
    upper = message.upper()
    return any(phrase in upper for phrase in TERMINATION_PHRASES)


def last_user_message(history: Iterable[Mapping[str, str]]) -> str:
    user_messages = [m.get("content", "") for m in history if m.get("role") == "user"]
    return user_messages[-1] if user_messages else ""


@dataclass
class ParsedLLMResponse:
    """Agent reply plus optional knowledge update from a tagged model response."""
    agent_response: str
    system_context: Optional[Dict[str, List[Dict[str, Any]]]] = None
    warnings: List[str] = field(default_factory=list)


def parse_llm_response(text: str) -> ParsedLLMResponse:
    """
    Split a model response into its <agent> and <system> parts.

    Untagged text is treated entirely as the agent reply. The <system> part
    must be a JSON object; entities without name/type and relationships
    without from/to/type are dropped with a warning. Never raises.
    """
    has_agent = "<agent>" in text and "</agent>" in text
    has_system = "<system>" in text and "</system>" in text
    result = ParsedLLMResponse(agent_response="")

    if not has_agent and not has_system:
        result.agent_response = text.strip()
        result.warnings.append("No <agent> or <system> tags found; treating whole response as agent reply")
        return result

    if has_agent:
        match = AGENT_TAG.search(text)
        if match:
            result.agent_response = match.group(1).strip()
        else:
            result.warnings.append("Found <agent> tag but could not extract its content")
    else:
        result.warnings.append("No <agent> section found in response")

    if not has_system:
        result.warnings.append("No <system> section found in response")
        return result

    match = SYSTEM_TAG.search(text)
    if not match:
        result.warnings.append("Found <system> tag but could not extract its content")
        return result

    try:
        parsed = json.loads(match.group(1).strip())
    except json.JSONDecodeError as e:
        result.warnings.append(f"Failed to parse <system> section as JSON: {e}")
        return result

    if not isinstance(parsed, dict):
        result.warnings.append("<system> section is not a JSON object")
        return result

    result.system_context = {
        "entities": _valid_entities(parsed.get("entities"), result.warnings),
        "relationships": _valid_relationships(parsed.get("relationships"), result.warnings),
    }
    return result


def _valid_entities(items: Any, warnings: List[str]) -> List[Dict[str, Any]]:
    if items is None:
        return []
    if not isinstance(items, list):
        warnings.append("<system> entities is not a list; ignoring")
        return []

    entities = []
    for item in items:
        if not isinstance(item, dict) or not _non_empty_str(item.get("name")) or not _non_empty_str(item.get("type")):
            warnings.append("Skipping entity without name or type")
            continue
        tags = item.get("tags")
        properties = item.get("properties")
        entities.append({
            "name": item["name"],
            "type": item["type"],
            "description": item.get("description") or "",
            "tags": [str(t) for t in tags] if isinstance(tags, list) else [],
            "properties": properties if isinstance(properties, dict) else {},
        })
    return entities


def _valid_relationships(items: Any, warnings: List[str]) -> List[Dict[str, Any]]:
    if items is None:
        return []
    if not isinstance(items, list):
        warnings.append("<system> relationships is not a list; ignoring")
        return []

    relationships = []
    for item in items:
        if not isinstance(item, dict) or not all(_non_empty_str(item.get(k)) for k in ("from", "to", "type")):
            warnings.append("Skipping relationship without from, to or type")
            continue
        properties = item.get("properties")
        relationships.append({
            "from": item["from"],
            "to": item["to"],
            "type": item["type"],
            "properties": properties if isinstance(properties, dict) else {},
        })
    return relationships


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def log_warnings(parsed: ParsedLLMResponse, node: str) -> None:
    for warning in parsed.warnings:
        logger.debug(f"{node}: {warning}")
