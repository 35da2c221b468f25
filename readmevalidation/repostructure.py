"""Registry directory layout checks.

This is not an exhaustive check of the whole repo. It only covers the parts
the later validation phases rely on; if the layout is wrong, nothing those
phases report can be trusted.
"""

import re
from pathlib import Path
from typing import List

from readmevalidation.coderresources import IGNORED_RESOURCE_DIRS, MAIN_TERRAFORM_FILENAME, SUPPORTED_RESOURCE_TYPES
from readmevalidation.errors import add_file_path_to_error
from readmevalidation.readmefiles import README_FILENAME, list_directory

NAMESPACE_IMAGES_DIR = ".images"
SUPPORTED_NAMESPACE_DIRECTORIES = SUPPORTED_RESOURCE_TYPES + (NAMESPACE_IMAGES_DIR,)

# Alphanumeric characters and hyphens, no leading or trailing hyphen
VALID_NAME_RE = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?$")


def validate_coder_resource_subdirectory(dir_path: Path) -> List[str]:
    """Validate every module/template directory inside one resource-type directory"""
    if not dir_path.is_dir():
        return [add_file_path_to_error(dir_path, "path is not a directory")]

    entries, read_error = list_directory(dir_path)
    if read_error:
        return [read_error]

    errors = []
    for entry in entries:
        if not entry.is_dir() or entry.name in IGNORED_RESOURCE_DIRS:
            continue

        if not VALID_NAME_RE.match(entry.name):
            errors.append(add_file_path_to_error(
                entry, "name contains invalid characters (only alphanumeric characters and hyphens are allowed)"
            ))
            continue

        # Both files are always checked so each missing one is reported
        readme_path = entry / README_FILENAME
        if not readme_path.is_file():
            errors.append(add_file_path_to_error(readme_path, f"'{README_FILENAME}' does not exist"))

        main_terraform_path = entry / MAIN_TERRAFORM_FILENAME
        if not main_terraform_path.is_file():
            errors.append(add_file_path_to_error(main_terraform_path, f"'{MAIN_TERRAFORM_FILENAME}' file does not exist"))
    return errors


def validate_registry_directory(registry_dir: Path) -> List[str]:
    """Validate the namespaces at the top of the registry directory"""
    namespace_paths, read_error = list_directory(registry_dir)
    if read_error:
        return [read_error]

    errors = []
    for namespace_path in namespace_paths:
        if not namespace_path.is_dir():
            errors.append(f'detected non-directory file "{namespace_path}" at base of main Registry directory')
            continue

        if not VALID_NAME_RE.match(namespace_path.name):
            errors.append(add_file_path_to_error(
                namespace_path,
                "namespace name contains invalid characters (only alphanumeric characters and hyphens are allowed)",
            ))
            continue

        contributor_readme_path = namespace_path / README_FILENAME
        if not contributor_readme_path.is_file():
            errors.append(add_file_path_to_error(contributor_readme_path, f"'{README_FILENAME}' does not exist"))

        entries, read_error = list_directory(namespace_path)
        if read_error:
            errors.append(read_error)
        for entry in entries:
            if not entry.is_dir():
                continue

            if entry.name not in SUPPORTED_NAMESPACE_DIRECTORIES:
                errors.append(add_file_path_to_error(
                    entry,
                    "only these sub-directories are allowed at top of user namespace: "
                    f"[{', '.join(SUPPORTED_NAMESPACE_DIRECTORIES)}]",
                ))
                continue
            if entry.name in SUPPORTED_RESOURCE_TYPES:
                errors.extend(validate_coder_resource_subdirectory(entry))
    return errors


def validate_repo_structure(registry_dir: Path, icons_dir: Path) -> List[str]:
    """Validate that the repo is structured well enough for the rest of validation to run"""
    if not registry_dir.is_dir():
        return [f'registry directory "{registry_dir}" does not exist']

    errors = validate_registry_directory(registry_dir)
    if not icons_dir.is_dir():
        errors.append(
            f'missing top-level "{icons_dir.name}" directory (used for storing reusable Coder resource icons)'
        )
    return errors
