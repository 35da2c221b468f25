"""Tests for module and template README validation."""

from pathlib import Path

import pytest

from conftest import VALID_MODULE_README, VALID_TEMPLATE_README
from readmevalidation.coderresources import (
    aggregate_coder_resource_readme_files,
    parse_coder_resource,
    validate_coder_resource,
    validate_coder_resource_relative_urls,
    validate_icon_url,
    validate_resource_description,
    validate_resource_display_name,
    validate_resource_tags,
    validate_supported_os,
)
from readmevalidation.readmefiles import Readme

NO_TERRAFORM_README = """---
description: Something without a usage example
icon: ./icon.svg
tags: []
---

# Something

Text, but no Terraform.
"""


def parse(resource_type: str, text: str, path: Path = Path("registry/alice/modules/thing/README.md")):
    resource, errors = parse_coder_resource(resource_type, Readme(file_path=path, raw_text=text))
    assert errors == []
    return resource


@pytest.mark.parametrize(("tags", "expected_count"), [
    ([], 0),
    (["ide", "web-dev", "node_js"], 0),
    (None, 1),
    (["has space"], 1),
    (["ok", "c++", "a/b"], 1),
])
def test_validate_resource_tags(tags, expected_count):
    assert len(validate_resource_tags(tags)) == expected_count


def test_invalid_tags_are_listed_together():
    assert validate_resource_tags(["ok", "c++", "a/b"]) == [
        "found invalid tags (tags that cannot be used for filter state in the Registry website): [c++, a/b]"
    ]


def test_validate_supported_os():
    assert validate_supported_os([]) == []
    assert validate_supported_os(["linux", "macos", "windows"]) == []
    assert validate_supported_os(["linux", "solaris", "Linux"]) == [
        'operating system "solaris" is not supported: [windows, macos, linux]',
        'operating system "Linux" is not supported: [windows, macos, linux]',
    ]


def test_validate_display_name_and_description():
    assert validate_resource_display_name(None) == []
    assert validate_resource_display_name("Code Server") == []
    assert validate_resource_display_name("  ") == ["if defined, display_name must not be empty string"]
    assert validate_resource_description("Runs things") == []
    assert validate_resource_description("") == ["frontmatter description cannot be empty"]


@pytest.mark.parametrize(("icon", "expected_count"), [
    ("./icon.svg", 0),
    ("/icon.png", 0),
    ("../../../../.icons/code.svg", 0),
    ("https://example.com/icon.svg", 0),
    ("", 1),
    ("icon.svg", 1),
    ("../other/icon.svg", 1),
    ("./icon.bmp", 1),
    ("mailto:icon.svg", 1),
])
def test_validate_icon_url(icon, expected_count):
    assert len(validate_icon_url(icon)) == expected_count


def test_validate_icon_url_messages():
    assert validate_icon_url("") == ["icon URL cannot be empty"]
    assert validate_icon_url("mailto:icon.svg") == ["absolute icon URL is not correctly formatted"]
    assert "must either be scoped to that resource's directory" in validate_icon_url("icon.svg")[0]


class TestValidateCoderResource:
    def test_valid_module(self):
        assert validate_coder_resource(parse("modules", VALID_MODULE_README)) == []

    def test_valid_template(self):
        path = Path("registry/alice/templates/docker/README.md")
        assert validate_coder_resource(parse("templates", VALID_TEMPLATE_README, path)) == []

    def test_module_requires_terraform_block(self):
        errors = validate_coder_resource(parse("modules", NO_TERRAFORM_README))
        assert errors == [
            '"registry/alice/modules/thing/README.md": did not find Terraform code block within h1 section'
        ]

    def test_template_does_not_require_terraform_block(self):
        assert validate_coder_resource(parse("templates", NO_TERRAFORM_README)) == []

    def test_missing_tags(self):
        text = VALID_MODULE_README.replace("tags: [ide, web]\n", "")
        errors = validate_coder_resource(parse("modules", text))
        assert errors == ['"registry/alice/modules/thing/README.md": provided tags array is nil']

    def test_resource_names(self):
        resource = parse("modules", VALID_MODULE_README)
        assert resource.namespace == "alice"
        assert resource.name == "thing"
        assert resource.frontmatter.tags == ["ide", "web"]


def test_parse_rejects_unknown_fields():
    text = VALID_MODULE_README.replace("tags: [ide, web]\n", "tags: [ide, web]\nmaintainer: alice\n")
    resource, errors = parse_coder_resource(
        "modules", Readme(file_path=Path("registry/alice/modules/thing/README.md"), raw_text=text)
    )
    assert resource is None
    assert errors == ['"registry/alice/modules/thing/README.md": Frontmatter field \'maintainer\' is not supported']


def test_parse_reads_numeric_tags_as_strings():
    text = VALID_MODULE_README.replace("tags: [ide, web]\n", "tags: [2024, web]\n")
    resource = parse("modules", text)
    assert resource.frontmatter.tags == ["2024", "web"]


def test_parse_rejects_wrong_field_types():
    text = VALID_MODULE_README.replace("tags: [ide, web]\n", "tags: ide\n")
    resource, errors = parse_coder_resource(
        "modules", Readme(file_path=Path("registry/alice/modules/thing/README.md"), raw_text=text)
    )
    assert resource is None
    assert len(errors) == 1
    assert "Frontmatter field 'tags'" in errors[0]


class TestRelativeIcons:
    def test_shared_icon(self, registry):
        readme_path = registry.add_resource("alice", "modules", "code-server")
        resource = parse("modules", readme_path.read_text(), readme_path)
        assert validate_coder_resource_relative_urls(resource, registry.icons_dir) == []

    def test_missing_shared_icon(self, registry):
        readme_path = registry.add_resource("alice", "modules", "code-server")
        (registry.icons_dir / "code.svg").unlink()
        resource = parse("modules", readme_path.read_text(), readme_path)

        errors = validate_coder_resource_relative_urls(resource, registry.icons_dir)
        assert len(errors) == 1
        assert "does not point to image in file system" in errors[0]

    def test_icon_in_resource_directory(self, registry):
        text = VALID_MODULE_README.replace("../../../../.icons/code.svg", "./icon.svg")
        readme_path = registry.add_resource("alice", "modules", "code-server", readme=text)
        (readme_path.parent / "icon.svg").write_text("<svg/>")
        resource = parse("modules", text, readme_path)
        assert validate_coder_resource_relative_urls(resource, registry.icons_dir) == []

    def test_icon_outside_allowed_directories(self, registry):
        text = VALID_MODULE_README.replace("../../../../.icons/code.svg", "../../../../elsewhere/code.svg")
        readme_path = registry.add_resource("alice", "modules", "code-server", readme=text)
        resource = parse("modules", text, readme_path)

        errors = validate_coder_resource_relative_urls(resource, registry.icons_dir)
        assert len(errors) == 1
        assert "cannot be placed outside the README's directory" in errors[0]

    def test_absolute_icon_is_not_checked(self, registry):
        text = VALID_MODULE_README.replace("../../../../.icons/code.svg", "https://example.com/missing.svg")
        resource = parse("modules", text)
        assert validate_coder_resource_relative_urls(resource, registry.icons_dir) == []


class TestAggregateResourceFiles:
    def test_aggregate(self, registry):
        registry.add_contributor("alice")
        registry.add_contributor("bob")
        module = registry.add_resource("alice", "modules", "code-server")
        template = registry.add_resource("bob", "templates", "docker")
        (registry.registry_dir / "alice" / "modules" / ".coder").mkdir()
        (registry.registry_dir / "bob" / "modules" / "broken").mkdir(parents=True)

        assert aggregate_coder_resource_readme_files(registry.registry_dir, "modules") == (
            [module],
            [f'"{registry.registry_dir / "bob" / "modules" / "broken" / "README.md"}": file does not exist'],
        )
        assert aggregate_coder_resource_readme_files(registry.registry_dir, "templates") == ([template], [])

    def test_unsupported_type(self, registry):
        with pytest.raises(ValueError):
            aggregate_coder_resource_readme_files(registry.registry_dir, "plugins")
