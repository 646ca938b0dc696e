"""
LLM Prompt Manager
Loads prompt templates (TOML or YAML) and renders them per category into
the system prompt, the user prompt and the generation parameters
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml

from ideatrium.core.errors import AIServiceError
from ideatrium.core.logger import get_logger
from ideatrium.core.paths import get_prompts_dir

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedPrompt:
    user: str
    system: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


class PromptManager:
    """Prompt templates keyed by category (idea_suggestions, idea_insights)"""

    def __init__(self, config_path: Optional[str] = None, language: str = "en"):
        self.language = language
        self.config_path = config_path or self._find_config_file(language)
        self.prompts: Dict[str, Any] = {}
        self.config: Dict[str, Any] = {}
        self._load_prompts()

    @staticmethod
    def _find_config_file(language: str) -> str:
        """prompts_<language>.toml/.yaml first, then the generic prompts file"""
        base_path = get_prompts_dir()
        candidates = [
            base_path / f"prompts_{language}.toml",
            base_path / f"prompts_{language}.yaml",
            base_path / "prompts.toml",
            base_path / "prompts.yaml",
        ]
        found = next((c for c in candidates if c.exists()), None)
        if found is None:
            logger.warning(f"No prompt file for language '{language}' in {base_path}")
            return str(candidates[0])
        return str(found)

    def _load_prompts(self):
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                if self.config_path.endswith(".toml"):
                    self.config = toml.load(f)
                else:
                    self.config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error(f"Prompt file does not exist: {self.config_path}")
            self.config = {}
        except (yaml.YAMLError, toml.TomlDecodeError) as e:
            logger.error(f"Failed to parse prompt file {self.config_path}: {e}")
            self.config = {}

        self.prompts = self.config.get("prompts", {})
        if self.prompts:
            logger.info(f"✓ Loaded {len(self.prompts)} prompt categories from {self.config_path}")

    def _section(self, category: str) -> Dict[str, Any]:
        """Template table for a dotted category name, empty when missing"""
        section: Any = self.prompts
        for part in category.split("."):
            section = section.get(part) if isinstance(section, dict) else None
        if not isinstance(section, dict):
            logger.warning(f"Prompt category not found: {category}")
            return {}
        return section

    def get_prompt(self, category: str, prompt_type: str, **kwargs) -> str:
        """
        Render one template of a category

        Args:
            category: Prompt category (e.g. idea_suggestions)
            prompt_type: Template key (system_prompt, user_prompt_template)
            **kwargs: Values substituted with str.format

        Returns:
            Rendered text, or "" when the template is missing
        """
        template = self._section(category).get(prompt_type, "")
        if not template:
            return ""
        if not kwargs:
            return template.strip()
        try:
            return template.format(**kwargs).strip()
        except KeyError as e:
            logger.error(f"Prompt {category}.{prompt_type} needs parameter {e}")
            return template.strip()

    def get_system_prompt(self, category: str) -> str:
        return self.get_prompt(category, "system_prompt")

    def get_user_prompt(
        self, category: str, prompt_type: str = "user_prompt_template", **kwargs
    ) -> str:
        return self.get_prompt(category, prompt_type, **kwargs)

    def get_config_params(self, category: str) -> Dict[str, Any]:
        """Default generation params merged with the category's overrides"""
        section = self.config.get("config", {})
        params = dict(section.get("default_params", {}))
        category_params = section.get(category)
        if isinstance(category_params, dict):
            params.update(category_params)
        return params

    def render(self, category: str, **kwargs) -> RenderedPrompt:
        """Everything needed for one generateContent call

        Raises:
            AIServiceError: the category has no user prompt template
        """
        user = self.get_user_prompt(category, **kwargs)
        if not user:
            raise AIServiceError(f"Prompt template missing: {category}")
        return RenderedPrompt(
            user=user,
            system=self.get_system_prompt(category) or None,
            params=self.get_config_params(category),
        )

    @property
    def loaded(self) -> bool:
        return bool(self.prompts) and Path(self.config_path).exists()
