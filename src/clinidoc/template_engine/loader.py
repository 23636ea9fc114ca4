"""Template definition loading and caching.

This module provides the TemplateLoader class for loading template
definitions from JSON files or strings with automatic validation and
caching support.
"""

import json
import logging
from pathlib import Path
from typing import Any, List

from clinidoc.models.template import Template
from clinidoc.template_engine.validators import ensure_valid_template
from clinidoc.utils.exceptions import TemplateLoadError


logger = logging.getLogger(__name__)


class TemplateLoader:
    """Loads and caches template definitions.

    A definition file holds either a single template object or a list of
    template objects.

    Attributes:
        _cache: Dictionary mapping resolved file paths to loaded templates
    """

    def __init__(self) -> None:
        """Initialize template loader with empty cache."""
        self._cache: dict[str, List[Template]] = {}
        logger.debug("TemplateLoader initialized")

    def load_from_file(self, file_path: Path) -> List[Template]:
        """Load template definitions from a JSON file.

        Args:
            file_path: Path to JSON template file

        Returns:
            Templates defined in the file

        Raises:
            TemplateLoadError: If file cannot be read, has encoding issues or
                does not hold valid template definitions
            TemplateValidationError: If a template is structurally invalid
        """
        # Check cache first
        cache_key = str(file_path.resolve())
        if cache_key in self._cache:
            logger.debug(f"Cache hit for template: {file_path}")
            return self._cache[cache_key]

        try:
            logger.info(f"Loading templates from file: {file_path}")

            if not file_path.exists():
                raise TemplateLoadError(
                    f"Template file not found: {file_path}. "
                    f"Check that the file path is correct and the file exists."
                )

            content = file_path.read_text(encoding="utf-8")

        except PermissionError as e:
            error_msg = (
                f"Permission denied reading template file: {file_path}. "
                f"Check file permissions."
            )
            logger.exception(error_msg)
            raise TemplateLoadError(error_msg) from e
        except UnicodeDecodeError as e:
            error_msg = (
                f"Template encoding error in {file_path}: {e}. "
                f"Ensure file is UTF-8 encoded."
            )
            logger.exception(error_msg)
            raise TemplateLoadError(error_msg) from e

        templates = self._parse(content, source=str(file_path))

        self._cache[cache_key] = templates
        logger.debug(f"Templates cached: {file_path}")
        return templates

    def load_from_string(self, template_str: str) -> List[Template]:
        """Load template definitions from a JSON string.

        Args:
            template_str: JSON text with one template object or a list

        Returns:
            Templates defined in the text

        Raises:
            TemplateLoadError: If the text is not valid template JSON
            TemplateValidationError: If a template is structurally invalid
        """
        logger.info("Loading templates from string")
        return self._parse(template_str, source="<string>")

    def _parse(self, content: str, source: str) -> List[Template]:
        try:
            payload: Any = json.loads(content)
        except json.JSONDecodeError as e:
            error_msg = (
                f"Malformed template JSON in {source} at line {e.lineno}: {e.msg}"
            )
            logger.exception(error_msg)
            raise TemplateLoadError(error_msg) from e

        items = payload if isinstance(payload, list) else [payload]

        templates: List[Template] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise TemplateLoadError(
                    f"Template #{index} in {source} is not a JSON object"
                )
            try:
                template = Template.from_dict(item)
            except KeyError as e:
                raise TemplateLoadError(
                    f"Template #{index} in {source} is missing key {e}"
                ) from e
            except ValueError as e:
                raise TemplateLoadError(
                    f"Template #{index} in {source} has an invalid value: {e}"
                ) from e

            result = ensure_valid_template(template)
            for warning in result.warnings:
                logger.warning(f"Template '{template.name}': {warning}")
            templates.append(template)

        logger.info(f"Loaded {len(templates)} templates from {source}")
        return templates

    def get_cached_templates(self, file_path: Path) -> List[Template] | None:
        """Get cached templates if available.

        Args:
            file_path: Path to template file

        Returns:
            Cached templates if available, None otherwise
        """
        cache_key = str(file_path.resolve())
        return self._cache.get(cache_key)

    def clear_cache(self) -> None:
        """Clear all cached templates."""
        logger.info(f"Clearing template cache ({len(self._cache)} entries)")
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        """Get the number of files currently cached."""
        return len(self._cache)
