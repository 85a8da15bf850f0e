"""
Jinja2 rendering of task options.

Task options may hold templates (``{{ inputs.pipeline_name }}``) that are
resolved against the execution context before any command is built.
"""

import base64
from typing import Any, Dict, Optional

from jinja2 import Environment, StrictUndefined, TemplateError

from dlt_tasks.core.errors import ConfigurationError
from dlt_tasks.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)


def add_b64encode_filter(env: Environment) -> Environment:
    """Add the b64encode filter to a Jinja2 environment."""
    if 'b64encode' not in env.filters:
        env.filters['b64encode'] = lambda s: base64.b64encode(str(s).encode('utf-8')).decode('utf-8')
    return env


def create_environment(strict: bool = False) -> Environment:
    """Jinja2 environment used when the caller does not provide one."""
    env = Environment(undefined=StrictUndefined) if strict else Environment()
    return add_b64encode_filter(env)


def render_template(env: Optional[Environment], template: Any, context: Dict[str, Any]) -> Any:
    """
    Render a string, list or dict of templates against ``context``.

    Plain strings without ``{{``/``{%`` markers are returned untouched, so
    shell text containing braces is never mangled. Non-string scalars pass
    through.
    """
    if env is None:
        env = create_environment()
    if isinstance(template, str):
        if '{{' not in template and '{%' not in template:
            return template
        add_b64encode_filter(env)
        try:
            return env.from_string(template).render(**(context or {}))
        except TemplateError as e:
            logger.error(f"Template rendering error: {e}, template: {template[:100]}")
            raise ConfigurationError(f"Failed to render template: {e}") from e
    if isinstance(template, list):
        return [render_template(env, item, context) for item in template]
    if isinstance(template, dict):
        return {
            render_template(env, key, context): render_template(env, value, context)
            for key, value in template.items()
        }
    return template
