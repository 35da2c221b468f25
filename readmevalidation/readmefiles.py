"""README file primitives: frontmatter splitting and markdown body validation.

The body validator is a single pass over the README lines. It tracks code
fences, heading depth and the evidence gathered inside the h1 section, and it
collects every violation instead of stopping at the first one.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from readmevalidation.errors import (
    EmptyDocument,
    EmptyFrontmatter,
    FrontmatterError,
    MissingOpeningFence,
    UnterminatedFrontmatter,
    add_file_path_to_error,
)
from readmevalidation.urls import is_url

README_FILENAME = "README.md"
FRONTMATTER_FENCE = "---"
CODE_FENCE = "```"

TERRAFORM_LANGUAGE = "tf"
DEPRECATED_TERRAFORM_LANGUAGE = "hcl"

SUPPORTED_AVATAR_FILE_FORMATS = (".png", ".jpeg", ".jpg", ".gif", ".svg")
SUPPORTED_ALERT_TYPES = ("NOTE", "IMPORTANT", "CAUTION", "WARNING", "TIP")

HEADER_RE = re.compile(r"^(#+)(\s*)")
TERRAFORM_VERSION_RE = re.compile(r"^\s*\bversion\s+=")
ALERT_HEADER_RE = re.compile(r"^((?:>\s*)+)\[!(\w+)(\]?)(.*)$")


@dataclass(frozen=True)
class Readme:
    """A single README file within the registry"""
    file_path: Path
    raw_text: str


def separate_frontmatter(readme_text: str) -> Tuple[str, str]:
    """Split a README into its frontmatter and body, in that order.

    Does not check that the frontmatter is valid YAML.

    Raises:
        FrontmatterError: one of its subclasses, naming what is wrong with the
            fences.
    """
    trimmed = readme_text.strip()
    if not trimmed:
        raise EmptyDocument()

    fm_lines: List[str] = []
    body_lines: List[str] = []
    fence_count = 0

    for line in trimmed.splitlines():
        if fence_count < 2 and line == FRONTMATTER_FENCE:
            fence_count += 1
            continue
        # The very first line has to be a fence
        if fence_count == 0:
            raise MissingOpeningFence()

        if fence_count >= 2:
            body_lines.append(line)
        else:
            # Indentation carries no meaning inside the frontmatter
            fm_lines.append(line.strip())

    if fence_count < 2:
        raise UnterminatedFrontmatter()

    frontmatter = "\n".join(fm_lines)
    if not frontmatter.strip():
        raise EmptyFrontmatter()

    return frontmatter + "\n", "\n".join(body_lines).strip()


def load_frontmatter_mapping(frontmatter: str) -> Dict[str, Any]:
    """Decode frontmatter text as a YAML key-value mapping"""
    data = yaml.safe_load(frontmatter)
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter must be a YAML key-value mapping")
    return data


@dataclass
class _BodyScanState:
    header_level: int = 0
    found_first_h1: bool = False
    inside_code_block: bool = False
    inside_language_tag: str = ""
    in_first_section: bool = True
    found_paragraph: bool = False
    terraform_block_count: int = 0
    found_version_directive: bool = False


def _is_paragraph(line: str) -> bool:
    # Past fences and headers, the only other options are blank lines,
    # paragraphs, HTML and image references
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("![") and not stripped.startswith("<")


def _toggle_code_fence(state: _BodyScanState, line: str, errors: List[str]) -> None:
    if state.inside_code_block:
        state.inside_code_block = False
        state.inside_language_tag = ""
        return

    # Only the first word of the info string names the language
    info = line[len(CODE_FENCE):].split()
    language = info[0] if info else ""
    state.inside_code_block = True
    state.inside_language_tag = language

    if language == DEPRECATED_TERRAFORM_LANGUAGE:
        errors.append("all .hcl language references must be converted to .tf")
    if language == TERRAFORM_LANGUAGE and state.in_first_section:
        state.terraform_block_count += 1


def _check_header(state: _BodyScanState, match: "re.Match[str]", errors: List[str]) -> bool:
    """Apply one header line to the scan state. Returns False when scanning must stop."""
    level = len(match.group(1))

    if match.group(2) == "":
        errors.append("header does not have space between header characters and main header text")

    if level == 1 and not state.found_first_h1:
        state.found_first_h1 = True
        state.header_level = 1
        return True

    # Any header after the first h1 closes the h1 section
    state.in_first_section = False

    if level == 1:
        errors.append("READMEs cannot contain more than one h1 header")
        return False
    if level > 6:
        errors.append(f"README/HTML files cannot have headers exceed level 6 (found level {level})")
        return False

    # Depth is left alone on a skipped level so later headers are not all flagged too
    if level > state.header_level and level != state.header_level + 1:
        errors.append("headers are not allowed to increase more than 1 level at a time")
        return True

    state.header_level = level
    return True


def validate_readme_body(body: str, require_terraform_block: bool = False) -> List[str]:
    """Validate a README body against the markdown subset the Registry site renders.

    Args:
        body: README body with the frontmatter already removed
        require_terraform_block: require exactly one ```tf block in the h1
            section, and require it to pin a ``version``

    Returns:
        Every violation found, in scan order
    """
    trimmed = body.strip()
    if not trimmed:
        return ["README body is empty"]

    # Nothing below can be trusted without a leading h1
    if not trimmed.startswith("# "):
        return ['README body must start with ATX-style h1 header (i.e., "# ")']

    errors: List[str] = []
    state = _BodyScanState()

    for line in trimmed.splitlines():
        # Terraform (and plenty of other languages) use # for comments, so
        # fences have to be tracked before anything is treated as a header
        if line.startswith(CODE_FENCE):
            _toggle_code_fence(state, line, errors)
            continue

        if state.inside_code_block:
            if state.inside_language_tag == TERRAFORM_LANGUAGE and state.in_first_section:
                if TERRAFORM_VERSION_RE.match(line):
                    state.found_version_directive = True
            continue

        header = HEADER_RE.match(line)
        if header:
            if not _check_header(state, header, errors):
                break
            continue

        if state.in_first_section and _is_paragraph(line):
            state.found_paragraph = True

    if require_terraform_block:
        if state.terraform_block_count == 0:
            errors.append("did not find Terraform code block within h1 section")
        else:
            if state.terraform_block_count > 1:
                errors.append("cannot have more than one Terraform code block in h1 section")
            if not state.found_version_directive:
                errors.append("did not find Terraform code block that specifies 'version' field")
    if not state.found_paragraph:
        errors.append("did not find paragraph within h1 section")
    if state.inside_code_block:
        errors.append("code blocks inside h1 section do not all terminate before end of file")

    return errors


def validate_gfm_alerts(body: str) -> List[str]:
    """Validate GitHub-flavored markdown alert blocks (e.g. ``> [!NOTE]``)"""
    errors: List[str] = []
    inside_code_block = False
    inside_alert = False
    awaiting_alert_content = False

    for line in body.strip().splitlines():
        if line.startswith(CODE_FENCE):
            inside_code_block = not inside_code_block
            inside_alert = False
            awaiting_alert_content = False
            continue
        if inside_code_block:
            continue

        match = ALERT_HEADER_RE.match(line)
        if match is None:
            if line.startswith("> "):
                awaiting_alert_content = False
            else:
                inside_alert = False
                awaiting_alert_content = False
            continue

        prefix, keyword, closing_bracket, trailing = match.groups()
        if inside_alert or prefix.count(">") > 1:
            errors.append(f"alert [!{keyword}] cannot be nested inside another alert")
            # The nested line counts as content of the enclosing alert
            inside_alert = True
            awaiting_alert_content = False
            continue

        inside_alert = True
        awaiting_alert_content = True

        if keyword.upper() not in SUPPORTED_ALERT_TYPES:
            errors.append(
                f"alert type [!{keyword}] is not supported: [{', '.join(SUPPORTED_ALERT_TYPES)}]"
            )
        elif keyword != keyword.upper():
            errors.append(f"alert type [!{keyword}] must be upper-case ([!{keyword.upper()}])")

        if prefix != "> ":
            errors.append(f"alert [!{keyword}] must have exactly one space between '>' and '['")

        if not closing_bracket:
            errors.append(f"alert [!{keyword} is missing its closing bracket")
        elif trailing.strip():
            errors.append(f"alert [!{keyword}] cannot have content on the same line as the alert type")

    if inside_alert and awaiting_alert_content:
        errors.append("README ends with an alert that has no content")

    return errors


def validate_image_url(image_url: Optional[str], label: str) -> List[str]:
    """Catch obvious problems with an avatar/icon URL.

    Whether the URL leads to a real image can't be checked here; relative
    paths are resolved later, during cross-referencing.
    """
    if image_url is None:
        return []
    if image_url == "":
        return [f"{label} URL must be omitted or non-empty string"]

    errors: List[str] = []
    # The one kind of URL that is allowed to be relative
    if not is_url(image_url):
        errors.append(f'URL "{image_url}" is not a valid relative or absolute URL')
    if "?" in image_url:
        errors.append(f"{label} URL is not allowed to contain search parameters")

    if not image_url.endswith(SUPPORTED_AVATAR_FILE_FORMATS):
        extension = image_url.rsplit(".", 1)[-1]
        errors.append(
            f"{label} URL '.{extension}' does not end in a supported file format: "
            f"[{', '.join(SUPPORTED_AVATAR_FILE_FORMATS)}]"
        )
    return errors


def list_directory(dir_path: Path) -> Tuple[List[Path], Optional[str]]:
    """Sorted entries of a directory, or an error message if it can't be read"""
    try:
        return sorted(dir_path.iterdir()), None
    except OSError as e:
        return [], add_file_path_to_error(dir_path, f"could not read directory: {e.strerror or e}")


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


def check_relative_asset(
    readme_path: Path, asset_url: str, label: str, shared_dirs: Iterable[Path] = ()
) -> Optional[str]:
    """Resolve a relative asset URL against the README's directory.

    The asset must stay inside the README's own directory (or one of the
    shared directories) and must be a readable file. Returns an error message,
    or None when the asset resolves.
    """
    owner_dir = readme_path.parent.resolve()
    # A leading slash is rooted at the README's own directory
    target = (owner_dir / asset_url.lstrip("/")).resolve()

    allowed_roots = [owner_dir] + [Path(d).resolve() for d in shared_dirs]
    if not any(_is_within(target, root) for root in allowed_roots):
        return f"relative {label} URL \"{asset_url}\" cannot be placed outside the README's directory"

    if not target.is_file() or not os.access(target, os.R_OK):
        return f'relative {label} path "{asset_url}" does not point to image in file system'
    return None
