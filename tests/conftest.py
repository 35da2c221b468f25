"""Shared fixtures for README validation tests.

Tests build small registries on disk under pytest's tmp_path:

    <tmp_path>/
        .icons/code.svg
        registry/<namespace>/README.md
        registry/<namespace>/<modules|templates>/<name>/{README.md,main.tf}
"""

from pathlib import Path

import pytest

from readmevalidation.config import ValidatorConfig

VALID_CONTRIBUTOR_README = """---
display_name: Alice
github: alice
---

# Alice

Bio text.
"""

VALID_MODULE_README = """---
display_name: Code Server
description: Run VS Code in the browser
icon: ../../../../.icons/code.svg
tags: [ide, web]
---

# Code Server

Automatically install code-server in a workspace.

```tf
module "code-server" {
  source  = "registry.coder.com/alice/code-server/coder"
  version = "1.0.0"
}
```

## Examples

Pin an extension:

```tf
module "code-server" {
  extensions = ["dracula-theme.theme-dracula"]
}
```
"""

VALID_TEMPLATE_README = """---
display_name: Docker Containers
description: Provision Docker containers as Coder workspaces
icon: ../../../../.icons/code.svg
tags: []
supported_os: [linux, macos]
---

# Docker Containers

Provision Docker containers as Coder workspaces with this template.

> [!NOTE]
> The Docker daemon must be reachable from the Coder server.
"""


class RegistryBuilder:
    """Writes registry trees for tests"""

    def __init__(self, root: Path):
        self.root = root
        self.registry_dir = root / "registry"
        self.icons_dir = root / ".icons"
        self.registry_dir.mkdir()
        self.icons_dir.mkdir()
        (self.icons_dir / "code.svg").write_text("<svg/>")

    def add_contributor(self, namespace: str, readme: str = VALID_CONTRIBUTOR_README) -> Path:
        namespace_dir = self.registry_dir / namespace
        namespace_dir.mkdir(parents=True, exist_ok=True)
        readme_path = namespace_dir / "README.md"
        readme_path.write_text(readme)
        return readme_path

    def add_resource(
        self,
        namespace: str,
        resource_type: str,
        name: str,
        readme: str | None = None,
        main_tf: bool = True,
    ) -> Path:
        if readme is None:
            readme = VALID_MODULE_README if resource_type == "modules" else VALID_TEMPLATE_README
        resource_dir = self.registry_dir / namespace / resource_type / name
        resource_dir.mkdir(parents=True, exist_ok=True)
        readme_path = resource_dir / "README.md"
        readme_path.write_text(readme)
        if main_tf:
            (resource_dir / "main.tf").write_text('terraform {}\n')
        return readme_path

    def config(self, **overrides) -> ValidatorConfig:
        return ValidatorConfig(registry_dir=self.registry_dir, **overrides)


def contributor_readme(**fields) -> str:
    """Contributor README with the given frontmatter and a valid body"""
    lines = ["---"]
    for key, value in fields.items():
        lines.append(f"{key}: {value}")
    lines.extend(["---", "", f"# {fields.get('display_name', 'Someone')}", "", "Bio text.", ""])
    return "\n".join(lines)


@pytest.fixture
def registry(tmp_path):
    """An empty registry with the shared .icons directory in place"""
    return RegistryBuilder(tmp_path)
