"""Shared test fixtures for depindex."""

from pathlib import Path

import pytest


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """A small TypeScript project with a chain of relative imports.

    src/index.ts -> src/utils/math.ts -> src/utils/format.ts
    src/app.tsx  -> src/utils (index.ts) and the external package "react"
    """
    src = tmp_path / "src"
    utils = src / "utils"
    utils.mkdir(parents=True)

    (src / "index.ts").write_text(
        "import { add } from './utils/math';\n"
        "\n"
        "export const total = add(1, 2);\n",
        encoding="utf-8",
    )
    (src / "app.tsx").write_text(
        "import React from 'react';\n"
        "import { format } from './utils';\n"
        "\n"
        "export default function App() {\n"
        "  return format(1);\n"
        "}\n",
        encoding="utf-8",
    )
    (utils / "math.ts").write_text(
        "import { format } from './format';\n"
        "\n"
        "export function add(a: number, b: number): number {\n"
        "  return a + b;\n"
        "}\n",
        encoding="utf-8",
    )
    (utils / "format.ts").write_text(
        "export const format = (n: number): string => String(n);\n",
        encoding="utf-8",
    )
    (utils / "index.ts").write_text(
        "export { format } from './format';\n",
        encoding="utf-8",
    )
    (tmp_path / "README.md").write_text("# Test Project\n", encoding="utf-8")

    ignored = tmp_path / "node_modules" / "react"
    ignored.mkdir(parents=True)
    (ignored / "index.js").write_text("module.exports = {};\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def py_project(tmp_path: Path) -> Path:
    """A small Python package using relative imports."""
    pkg = tmp_path / "pkg"
    (pkg / "sub").mkdir(parents=True)
    (pkg / "__init__.py").write_text("", encoding="utf-8")
    (pkg / "core.py").write_text(
        "from .helpers import slugify\n"
        "from .sub import tools\n"
        "import os\n"
        "\n"
        "def run(name: str) -> str:\n"
        "    return slugify(name)\n",
        encoding="utf-8",
    )
    (pkg / "helpers.py").write_text(
        "MAX_LEN = 40\n"
        "\n"
        "def slugify(text):\n"
        "    return text.lower()[:MAX_LEN]\n",
        encoding="utf-8",
    )
    (pkg / "sub" / "__init__.py").write_text("from ..helpers import MAX_LEN\n", encoding="utf-8")
    (pkg / "sub" / "tools.py").write_text("def tool():\n    pass\n", encoding="utf-8")
    return tmp_path
