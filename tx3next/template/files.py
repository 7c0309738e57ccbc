"""Files tx3next writes into a project.

The text templates are rendered with Jinja2; trix.toml is built as data and
serialized with tomli_w. The devnet bundle ships as package data next to this
module.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

from tx3next.template.engine import indent_lines, render

DEVNET_BUNDLE_DIR = Path(__file__).parent / "devnet"

TRIX_TOML_PATH = "tx3/trix.toml"
MAIN_TX3_PATH = "tx3/main.tx3"
GENERATE_SCRIPT_PATH = "scripts/generate-tx3.mjs"

WEBPACK_BLOCK = """\
webpack: (config) => {
  config.resolve.alias = {
    ...config.resolve.alias,
    '@tx3': `${process.cwd()}/tx3/bindings`,
  };

  return config;
},"""

NEXT_CONFIG_TEMPLATE = """\
{% if typescript %}
import type { NextConfig } from "next";

const nextConfig: NextConfig = {
{% else %}
/** @type {import('next').NextConfig} */
const nextConfig = {
{% endif %}
{{ webpack_block | indent_lines("  ") }}
};

{% if esm %}
export default nextConfig;
{% else %}
module.exports = nextConfig;
{% endif %}
"""

MAIN_TX3_TEMPLATE = """\
party Sender;

party Receiver;

tx transfer(
    quantity: Int
) {
    input source {
        from: Sender,
        min_amount: Ada(quantity) + fees,
    }

    output {
        to: Receiver,
        amount: Ada(quantity),
    }

    output {
        to: Sender,
        amount: source - Ada(quantity) - fees,
    }
}
"""

GENERATE_SCRIPT_TEMPLATE = """\
// Generated by tx3next. Regenerates TypeScript bindings for tx3/*.tx3.
import { execSync } from 'node:child_process';
import { existsSync } from 'node:fs';
import path from 'node:path';
import { glob } from 'glob';
import 'dotenv/config';

const tx3Dir = path.join(process.cwd(), 'tx3');
const trpEndpoint = process.env.TX3_TRP_ENDPOINT ?? '{{ trp_endpoint }}';

if (!existsSync(path.join(tx3Dir, 'trix.toml'))) {
  console.error('tx3/trix.toml not found');
  process.exit(1);
}

const sources = await glob('**/*.tx3', { cwd: tx3Dir, ignore: 'bindings/**' });
if (sources.length === 0) {
  console.log('No .tx3 files found, skipping binding generation');
  process.exit(0);
}

console.log(`Generating TX3 bindings for ${sources.length} file(s)...`);
try {
  execSync('trix bindgen', {
    cwd: tx3Dir,
    stdio: 'inherit',
    env: { ...process.env, TX3_TRP_ENDPOINT: trpEndpoint },
  });
  console.log('TX3 bindings written to tx3/bindings');
} catch (error) {
  console.error('Failed to generate TX3 bindings:', error.message);
  process.exit(1);
}
"""


@dataclass(frozen=True)
class TemplateFile:
    """A file to write, relative to the project root."""

    path: str
    content: str


def webpack_block(indent: str = "") -> str:
    """The TX3 webpack property, each line prefixed with indent."""
    return indent_lines(WEBPACK_BLOCK, indent)


def render_next_config(typescript: bool, esm: bool | None = None) -> str:
    """Render a complete next config module holding only the TX3 webpack hook.

    Args:
        typescript: Render next.config.ts syntax
        esm: Use ``export default``; defaults to True for TypeScript
    """
    if esm is None:
        esm = typescript
    return render(
        NEXT_CONFIG_TEMPLATE,
        {"typescript": typescript, "esm": esm, "webpack_block": WEBPACK_BLOCK},
    )


def render_trix_toml(project_name: str) -> str:
    data: dict[str, Any] = {
        "protocol": {
            "name": project_name,
            "scope": "",
            "version": "0.1.0",
            "description": f"TX3 protocol for {project_name}",
            "main": "main.tx3",
        },
        "bindings": [
            {
                "plugin": "typescript",
                "output_dir": "./bindings",
            }
        ],
    }
    return tomli_w.dumps(data)


def render_generate_script(trp_endpoint: str) -> str:
    return render(GENERATE_SCRIPT_TEMPLATE, {"trp_endpoint": trp_endpoint})


def tx3_template_files(project_name: str, trp_endpoint: str) -> list[TemplateFile]:
    """All static files a TX3 install writes.

    Args:
        project_name: Name used for the TX3 protocol
        trp_endpoint: Default TRP endpoint baked into the generation script

    Returns:
        Files in write order
    """
    return [
        TemplateFile(TRIX_TOML_PATH, render_trix_toml(project_name)),
        TemplateFile(MAIN_TX3_PATH, MAIN_TX3_TEMPLATE),
        TemplateFile(GENERATE_SCRIPT_PATH, render_generate_script(trp_endpoint)),
    ]
