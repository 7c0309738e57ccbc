"""Jinja2 template engine wrapper for tx3next."""

from typing import Any

from jinja2 import (
    BaseLoader,
    Environment,
    StrictUndefined,
    TemplateError,
    TemplateSyntaxError,
    UndefinedError,
)


class TemplateRenderError(Exception):
    """Error rendering a template."""

    def __init__(self, message: str, source: str | None = None, line: int | None = None):
        self.source = source
        self.line = line
        super().__init__(message)


class TemplateEngine:
    """Renders the text templates written into a project.

    Templates are JavaScript, TypeScript and TX3 sources, so no HTML
    escaping is applied and undefined variables are errors.
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["indent_lines"] = indent_lines

    def render_string(self, template_str: str, context: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template_str: Template content with Jinja2 syntax
            context: Context dictionary for variable substitution

        Returns:
            Rendered template string

        Raises:
            TemplateRenderError: If rendering fails
        """
        try:
            template = self._env.from_string(template_str)
            return template.render(context)
        except TemplateSyntaxError as e:
            raise TemplateRenderError(
                f"Template syntax error: {e.message}",
                source=template_str[:100],
                line=e.lineno,
            ) from e
        except UndefinedError as e:
            raise TemplateRenderError(
                f"Undefined variable in template: {e}",
                source=template_str[:100],
            ) from e
        except TemplateError as e:
            raise TemplateRenderError(f"Template error: {e}") from e


def indent_lines(text: str, prefix: str) -> str:
    """Prefix every non-empty line of text."""
    return "\n".join(prefix + line if line.strip() else line for line in text.split("\n"))


# Global engine instance
_engine: TemplateEngine | None = None


def get_engine() -> TemplateEngine:
    """Get the global template engine instance."""
    global _engine
    if _engine is None:
        _engine = TemplateEngine()
    return _engine


def render(template_str: str, context: dict[str, Any]) -> str:
    """Render a template string using the global engine."""
    return get_engine().render_string(template_str, context)
