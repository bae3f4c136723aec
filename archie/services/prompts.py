"""
Prompt templates with file overrides.

Templates are looked up by ``(agent, prompt_key)``. Built-in defaults are
registered by the workflow; a JSON config file can replace any of them:

    {
      "prompts": {
        "AnalysisAgent": {
          "initial": {"path": "prompts/initial.txt", "inputs": ["fileList", "query"]}
        }
      }
    }

Relative template paths resolve against the config file's directory.
Placeholders use ``{{name}}`` and are replaced with ``str(value)``; unknown
placeholders are left as-is.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from archie.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PromptKey = Tuple[str, str]


def render_template(template: str, context: Mapping[str, Any]) -> str:
    text = template
    for key, value in context.items():
        text = text.replace("{{" + key + "}}", str(value))
    return text


class PromptService:
    """
    Resolves and renders prompt templates.

    Args:
        defaults: Built-in templates keyed by (agent, prompt_key)
        config_path: Optional JSON file with template overrides
    """

    def __init__(
        self,
        defaults: Optional[Mapping[PromptKey, str]] = None,
        config_path: Optional[str | Path] = None,
    ):
        self.defaults: Dict[PromptKey, str] = dict(defaults or {})
        self.config_path = Path(config_path).resolve() if config_path else None
        self._overrides: Optional[Dict[str, Any]] = None

    def _load_config(self) -> Dict[str, Any]:
        if self._overrides is not None:
            return self._overrides
        if self.config_path is None:
            self._overrides = {}
            return self._overrides
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load prompt configuration {self.config_path}: {e}"
            ) from e
        self._overrides = data.get("prompts", {}) if isinstance(data, dict) else {}
        return self._overrides

    def _resolve_path(self, template_path: str) -> Path:
        path = Path(template_path)
        if path.is_absolute():
            return path
        base = self.config_path.parent if self.config_path else Path.cwd()
        return base / path

    def get_template(self, agent: str, prompt_key: str) -> str:
        agent_overrides = self._load_config().get(agent) or {}
        if not isinstance(agent_overrides, dict):
            raise ConfigurationError(f"Prompt overrides for {agent} must be an object in {self.config_path}")
        override = agent_overrides.get(prompt_key)
        if override:
            if not isinstance(override, dict) or not override.get("path"):
                raise ConfigurationError(
                    f"Prompt override {agent}/{prompt_key} in {self.config_path} needs a \"path\""
                )
            path = self._resolve_path(override["path"])
            try:
                logger.debug(f"Using prompt override {path} for {agent}/{prompt_key}")
                return path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(
                    f"Error loading prompt file {path} for {agent}/{prompt_key}: {e}"
                ) from e

        try:
            return self.defaults[(agent, prompt_key)]
        except KeyError:
            raise ConfigurationError(f"No prompt template registered for {agent}/{prompt_key}")

    def format(self, agent: str, prompt_key: str, context: Mapping[str, Any]) -> str:
        """Render the template for ``(agent, prompt_key)`` with ``context``."""
        return render_template(self.get_template(agent, prompt_key), context)
