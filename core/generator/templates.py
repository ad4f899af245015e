"""Named templates for the generated project."""

from typing import Any, Dict, List, Optional

import jinja2

from core.ir.errors import ConversionError
from core.naming import camel_case, env_name, indent, kebab_case, pascal_case, quote, snake_case, ts_object, ts_value

MAIN_FILE_TEMPLATE = """{% if comments %}
/**
 * {{ description }}
 * Generated by flowgen
 */

{% endif %}
{{ imports }}

{% for declaration in declarations %}
{{ declaration }}

{% endfor %}
function toText(value: unknown): string {
  if (typeof value === 'string') {
    return value;
  }
  if (value && typeof value === 'object') {
    const record = value as Record<string, unknown>;
    for (const key of ['text', 'response', 'output']) {
      if (typeof record[key] === 'string') {
        return record[key] as string;
      }
    }
    return JSON.stringify(value);
  }
  return value === undefined ? '' : String(value);
}

{{ main_function }}

{% if comments %}
// CLI entry point
{% endif %}
{% if module_format == 'esm' %}
if (import.meta.url === `file://${process.argv[1]}`) {
{% else %}
if (require.main === module) {
{% endif %}
  const input = process.argv[2] || 'Hello, world!';
  main(input)
    .then((output) => {
      console.log(output);
    })
    .catch((error) => {
      console.error('Error:', error);
      process.exit(1);
    });
}
{% for export in exports %}

{{ export }}
{% endfor %}
"""

MAIN_FUNCTION_TEMPLATE = """{% if comments %}
/**
 * Main function for {{ graph_name }}
 */
{% endif %}
export async function main(input: string, options: Record<string, unknown> = {}): Promise<string> {
{% if langfuse %}
  const trace = langfuse.trace({
    name: {{ graph_name | quote }},
    input: { text: input, options },
  });
{% endif %}
  let result: unknown = undefined;
  try {
{% for block in initializations %}
    {{ block }}
{% endfor %}
{% for block in executions %}
    {{ block }}
{% endfor %}
  } catch (error) {
    console.error('Error in main function:', error);
{% if langfuse %}
    trace.update({ output: { error: String(error) } });
    await langfuse.flushAsync();
{% endif %}
    throw error;
  }
  const output = toText(result);
{% if langfuse %}
  trace.update({ output: { text: output } });
  await langfuse.flushAsync();
{% endif %}
  return output;
}
"""

TYPES_FILE_TEMPLATE = """{% if comments %}
/**
 * Type definitions for {{ project_name }}
 * Generated by flowgen
 */

{% endif %}
{% for interface in interfaces %}
export interface {{ interface.name | pascal_case }} {
{% for field in interface.fields %}
  {{ field.name }}{{ '?' if field.optional else '' }}: {{ field.type }};
{% endfor %}
}

{% endfor %}
"""

CONFIG_FILE_TEMPLATE = """{% if comments %}
/**
 * Configuration for {{ project_name }}
 * Generated by flowgen
 */

{% endif %}
import type { AppConfig } from '{{ types_import }}';

export const config: AppConfig = {{ config | ts_object }};
{% if langfuse %}

export const langfuseConfig = {
  publicKey: process.env.LANGFUSE_PUBLIC_KEY,
  secretKey: process.env.LANGFUSE_SECRET_KEY,
  baseUrl: process.env.LANGFUSE_BASE_URL || 'https://cloud.langfuse.com',
  enabled: process.env.LANGFUSE_ENABLED !== 'false',
};
{% endif %}

export const environment = {
  nodeEnv: process.env.NODE_ENV || 'development',
  logLevel: process.env.LOG_LEVEL || 'info',
{% for key, value in environment | dictsort %}
  {{ key | camel_case }}: process.env.{{ key | env_name }} || {{ value | quote }},
{% endfor %}
};
"""

ENV_FILE_TEMPLATE = """{% for variable in variables %}
# {{ variable.description }}{{ ' (required)' if variable.required else '' }}
{{ variable.name }}={{ variable.example }}
{% if not loop.last %}

{% endif %}
{% endfor %}
"""

MAIN_TEST_TEMPLATE = """{% if comments %}
/**
 * Tests for {{ project_name }}
 * Generated by flowgen
 */

{% endif %}
import { main } from '{{ index_import }}';

describe({{ graph_name | quote }}, () => {
  beforeEach(() => {
    process.env.NODE_ENV = 'test';
{% if langfuse %}
    process.env.LANGFUSE_ENABLED = 'false';
{% endif %}
  });

  test('exports a main function', () => {
    expect(typeof main).toBe('function');
  });
{% if has_execution %}

  test('processes basic input', async () => {
    const result = await main('test input');
    expect(typeof result).toBe('string');
  });

  test('handles options', async () => {
    const result = await main('test input', { temperature: 0.5 });
    expect(typeof result).toBe('string');
  });
{% endif %}
});
"""

README_TEMPLATE = """# {{ project_name }}

{{ description }}

Generated by flowgen from a {{ nodes | length }}-node workflow ({{ complexity }}).

## Setup

```bash
npm install
cp .env.example .env
```

## Usage

```bash
npm run dev -- "Hello, world!"
npm run build && npm start
```
{% if nodes %}

## Nodes

| Node | Type | Category |
|---|---|---|
{% for node in nodes %}
| {{ node.display_name }} | `{{ node.type }}` | {{ node.category or '-' }} |
{% endfor %}
{% endif %}
{% if variables %}

## Environment

{% for variable in variables %}
- `{{ variable.name }}`: {{ variable.description }}
{% endfor %}
{% endif %}
{% if warnings %}

## Conversion warnings

{% for warning in warnings %}
- {{ warning }}
{% endfor %}
{% endif %}
"""

TEMPLATES = {
    "main_file": MAIN_FILE_TEMPLATE,
    "main_function": MAIN_FUNCTION_TEMPLATE,
    "types_file": TYPES_FILE_TEMPLATE,
    "config_file": CONFIG_FILE_TEMPLATE,
    "env_file": ENV_FILE_TEMPLATE,
    "main_test": MAIN_TEST_TEMPLATE,
    "readme": README_TEMPLATE,
}


class TemplateRenderer:
    """Renders named templates.

    Each renderer owns its Jinja2 environment, so concurrent conversions
    never share template state.
    """

    def __init__(self, templates: Optional[Dict[str, str]] = None, quote_char: str = "'",
                 include_comments: bool = True):
        self.quote_char = quote_char
        self.include_comments = include_comments
        self.templates = dict(TEMPLATES if templates is None else templates)
        self._setup_jinja()

    def _setup_jinja(self):
        self.jinja_env = jinja2.Environment(
            loader=jinja2.DictLoader(self.templates),
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )

        self.jinja_env.filters['snake_case'] = snake_case
        self.jinja_env.filters['camel_case'] = camel_case
        self.jinja_env.filters['pascal_case'] = pascal_case
        self.jinja_env.filters['kebab_case'] = kebab_case
        self.jinja_env.filters['env_name'] = env_name
        self.jinja_env.filters['indent'] = indent
        self.jinja_env.filters['quote'] = self._quote
        self.jinja_env.filters['ts_value'] = self._ts_value
        self.jinja_env.filters['ts_object'] = self._ts_object

        self.jinja_env.globals['comments'] = self.include_comments

    def _quote(self, value: Any) -> str:
        return quote(value, self.quote_char)

    def _ts_value(self, value: Any) -> str:
        return ts_value(value, self.quote_char)

    def _ts_object(self, value: Any) -> str:
        return ts_object(value, self.quote_char)

    def names(self) -> List[str]:
        return sorted(self.templates)

    def render(self, template_name: str, **context: Any) -> str:
        if template_name not in self.templates:
            raise ConversionError(f"Unknown template '{template_name}'")
        try:
            template = self.jinja_env.get_template(template_name)
            return template.render(**context)
        except jinja2.TemplateError as e:
            raise ConversionError(f"Failed to render template '{template_name}': {e}") from e
