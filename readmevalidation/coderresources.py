"""Coder resource READMEs (modules and templates).

A resource is a Terraform unit that helps create Coder workspaces. Both kinds
share one frontmatter schema; modules additionally have to show a pinned
Terraform usage example in their h1 section.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from readmevalidation.errors import FrontmatterError, add_file_path_to_error
from readmevalidation.readmefiles import (
    README_FILENAME,
    Readme,
    check_relative_asset,
    list_directory,
    load_frontmatter_mapping,
    separate_frontmatter,
    validate_gfm_alerts,
    validate_image_url,
    validate_readme_body,
)
from readmevalidation.schemas import CoderResourceFrontmatter, format_schema_errors
from readmevalidation.urls import is_query_safe, is_relative_url, is_request_uri

SUPPORTED_RESOURCE_TYPES = ("modules", "templates")
SUPPORTED_OS = ("windows", "macos", "linux")

MAIN_TERRAFORM_FILENAME = "main.tf"
# Generated by local test runs, never committed
IGNORED_RESOURCE_DIRS = (".coder",)

# From registry/<namespace>/<type>/<name>/README.md up to the repo root
SHARED_ICONS_PREFIX = "../../../../.icons/"


@dataclass
class CoderResource:
    """A module or template README whose frontmatter has been decoded"""
    resource_type: str
    file_path: Path
    frontmatter: CoderResourceFrontmatter
    body: str

    @property
    def namespace(self) -> str:
        return self.file_path.parents[2].name

    @property
    def name(self) -> str:
        return self.file_path.parent.name


def validate_resource_display_name(display_name: Optional[str]) -> List[str]:
    if display_name is not None and display_name.strip() == "":
        return ["if defined, display_name must not be empty string"]
    return []


def validate_resource_description(description: str) -> List[str]:
    if description.strip() == "":
        return ["frontmatter description cannot be empty"]
    return []


def is_permitted_relative_icon_url(icon_url: str) -> bool:
    return icon_url.startswith(("./", "/", SHARED_ICONS_PREFIX))


def validate_icon_url(icon_url: str) -> List[str]:
    if icon_url == "":
        return ["icon URL cannot be empty"]

    errors = validate_image_url(icon_url, "icon")
    if is_relative_url(icon_url):
        if not is_permitted_relative_icon_url(icon_url):
            errors.append(
                f'relative icon URL "{icon_url}" must either be scoped to that resource\'s directory, '
                f'or the top-level .icons directory (start the path with "{SHARED_ICONS_PREFIX}")'
            )
    elif not is_request_uri(icon_url):
        errors.append("absolute icon URL is not correctly formatted")
    return errors


def validate_resource_tags(tags: Optional[List[str]]) -> List[str]:
    # An empty list is fine; a missing one is not
    if tags is None:
        return ["provided tags array is nil"]

    # Tags drive the Registry site's filter controls, so they have to survive
    # being placed in the browser URL as-is
    invalid = [tag for tag in tags if not is_query_safe(tag)]
    if invalid:
        return [
            "found invalid tags (tags that cannot be used for filter state in the Registry website): "
            f"[{', '.join(invalid)}]"
        ]
    return []


def validate_supported_os(supported_os: Iterable[str]) -> List[str]:
    errors = []
    for os_name in supported_os:
        if os_name not in SUPPORTED_OS:
            errors.append(f'operating system "{os_name}" is not supported: [{", ".join(SUPPORTED_OS)}]')
    return errors


RESOURCE_FIELD_VALIDATORS: Tuple[Callable[[CoderResourceFrontmatter], List[str]], ...] = (
    lambda fm: validate_resource_display_name(fm.display_name),
    lambda fm: validate_resource_description(fm.description),
    lambda fm: validate_resource_tags(fm.tags),
    lambda fm: validate_icon_url(fm.icon),
    lambda fm: validate_supported_os(fm.supported_os),
)


def parse_coder_resource(resource_type: str, rm: Readme) -> Tuple[Optional[CoderResource], List[str]]:
    """Split and decode one module/template README"""
    try:
        fm, body = separate_frontmatter(rm.raw_text)
        data = load_frontmatter_mapping(fm)
    except (FrontmatterError, yaml.YAMLError) as e:
        return None, [add_file_path_to_error(rm.file_path, f"failed to parse frontmatter: {e}")]

    try:
        frontmatter = CoderResourceFrontmatter(**data)
    except ValidationError as e:
        return None, [add_file_path_to_error(rm.file_path, msg) for msg in format_schema_errors(e)]

    return CoderResource(
        resource_type=resource_type,
        file_path=rm.file_path,
        frontmatter=frontmatter,
        body=body,
    ), []


def validate_coder_resource(resource: CoderResource) -> List[str]:
    """Run the body validators and every field validator over one resource"""
    messages = validate_readme_body(
        resource.body,
        require_terraform_block=resource.resource_type == "modules",
    )
    messages.extend(validate_gfm_alerts(resource.body))
    for validator in RESOURCE_FIELD_VALIDATORS:
        messages.extend(validator(resource.frontmatter))
    return [add_file_path_to_error(resource.file_path, msg) for msg in messages]


def validate_coder_resource_relative_urls(resource: CoderResource, icons_dir: Path) -> List[str]:
    """Check that a relative icon URL resolves to a real image"""
    icon = resource.frontmatter.icon
    if not icon or not is_relative_url(icon):
        return []

    error = check_relative_asset(resource.file_path, icon, "icon", shared_dirs=[icons_dir])
    if error is None:
        return []
    return [add_file_path_to_error(resource.file_path, error)]


def aggregate_coder_resource_readme_files(registry_dir: Path, resource_type: str) -> Tuple[List[Path], List[str]]:
    """Find the README of every resource of one type, across all namespaces"""
    if resource_type not in SUPPORTED_RESOURCE_TYPES:
        raise ValueError(
            f'resource type "{resource_type}" is not part of supported list [{", ".join(SUPPORTED_RESOURCE_TYPES)}]'
        )

    paths = []
    namespace_dirs, read_error = list_directory(registry_dir)
    errors = [read_error] if read_error else []
    for namespace_dir in namespace_dirs:
        resource_root = namespace_dir / resource_type
        if not namespace_dir.is_dir() or not resource_root.is_dir():
            continue

        resource_dirs, read_error = list_directory(resource_root)
        if read_error:
            errors.append(read_error)
        for resource_dir in resource_dirs:
            if not resource_dir.is_dir() or resource_dir.name in IGNORED_RESOURCE_DIRS:
                continue
            readme_path = resource_dir / README_FILENAME
            if not readme_path.is_file():
                errors.append(add_file_path_to_error(readme_path, "file does not exist"))
                continue
            paths.append(readme_path)
    return paths, errors
