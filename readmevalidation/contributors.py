"""Contributor profile READMEs: parsing, field validation and cross-referencing.

Each registry namespace has a README.md describing one contributor. The
frontmatter is parsed by the Registry site build step and displayed in the
site's UI, so every field has to be well-formed before the site can trust it.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

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
from readmevalidation.schemas import ContributorProfileFrontmatter, format_schema_errors
from readmevalidation.urls import is_path_segment_safe, is_relative_url, is_request_uri


class ContributorStatus(str, Enum):
    """Contributor status. Community is the default when none is given."""
    COMMUNITY = "community"
    PARTNER = "partner"
    OFFICIAL = "official"


VALID_CONTRIBUTOR_STATUSES = tuple(status.value for status in ContributorStatus)


@dataclass
class ContributorProfileReadme:
    """A contributor README whose frontmatter has been decoded"""
    file_path: Path
    namespace: str
    frontmatter: ContributorProfileFrontmatter
    body: str


@dataclass
class ContributorProfile:
    """A fully validated contributor, keyed by GitHub username"""
    github_username: str
    display_name: str
    bio: str = ""
    avatar_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    website_url: Optional[str] = None
    support_email: Optional[str] = None
    employer_github_username: Optional[str] = None
    status: ContributorStatus = ContributorStatus.COMMUNITY
    employee_github_usernames: List[str] = field(default_factory=list)
    file_path: Optional[Path] = None


def validate_github_username(username: str) -> List[str]:
    if username.strip() == "":
        return ["missing GitHub username"]
    if username != username.strip():
        return [f'GitHub username "{username.strip()}" has extra whitespace']

    lower = username.lower()
    if not is_path_segment_safe(lower):
        return [f'GitHub username "{username}" is not a valid URL path segment']
    return []


def validate_employer_github_username(employer: Optional[str], own_username: str) -> List[str]:
    if employer is None:
        return []
    if employer.strip() == "":
        return ["employer_github field is defined but has empty value"]

    errors = []
    if not is_path_segment_safe(employer.lower()):
        errors.append(f'GitHub employer username "{employer}" is not a valid URL path segment')
    if employer == own_username:
        errors.append(f'cannot list own GitHub name ("{own_username}") as employer')
    return errors


def validate_display_name(display_name: str) -> List[str]:
    if display_name.strip() == "":
        return ["missing display_name"]
    return []


def validate_request_uri(value: Optional[str], label: str) -> List[str]:
    if value is None:
        return []
    if not is_request_uri(value):
        return [f'{label} URL "{value}" is not valid']
    return []


def validate_support_email(email: Optional[str]) -> List[str]:
    """Best-effort structural check of an email address.

    Sending a message is the only real proof an address works, and that is not
    something to do on every CI run.
    """
    if email is None:
        return []

    username, at_sign, server = email.partition("@")
    if not at_sign:
        return [f'email address "{email}" is missing @ symbol']

    errors = []
    if username == "":
        errors.append(f'email address "{email}" is missing username')
    if "@" in server:
        errors.append(f'email address "{email}" has more than one @ symbol')

    domain, period, tld = server.partition(".")
    if not period:
        errors.append(f'email address "{email}" is missing period for server segment')
    else:
        if domain == "":
            errors.append(f'email address "{email}" is missing domain')
        if tld == "":
            errors.append(f'email address "{email}" is missing top-level domain')
    if "?" in email:
        errors.append("email is not allowed to contain query parameters")
    return errors


def validate_contributor_status(status: Optional[str]) -> List[str]:
    if status is None:
        return []
    if status not in VALID_CONTRIBUTOR_STATUSES:
        return [f'contributor status "{status}" is not valid: [{", ".join(VALID_CONTRIBUTOR_STATUSES)}]']
    return []


# Every check runs for every profile; results are combined, never short-circuited
CONTRIBUTOR_FIELD_VALIDATORS: Tuple[Callable[[ContributorProfileFrontmatter], List[str]], ...] = (
    lambda fm: validate_github_username(fm.github),
    lambda fm: validate_employer_github_username(fm.employer_github, fm.github),
    lambda fm: validate_display_name(fm.display_name),
    lambda fm: validate_request_uri(fm.linkedin, "LinkedIn"),
    lambda fm: validate_request_uri(fm.website, "website"),
    lambda fm: validate_support_email(fm.support_email),
    lambda fm: validate_contributor_status(fm.status),
    lambda fm: validate_image_url(fm.avatar, "avatar"),
)


def parse_contributor_profile(rm: Readme) -> Tuple[Optional[ContributorProfileReadme], List[str]]:
    """Split and decode one contributor README.

    Returns the parsed profile, or None plus every parse error found.
    """
    try:
        fm, body = separate_frontmatter(rm.raw_text)
        data = load_frontmatter_mapping(fm)
    except (FrontmatterError, yaml.YAMLError) as e:
        return None, [add_file_path_to_error(rm.file_path, f"failed to parse frontmatter: {e}")]

    try:
        frontmatter = ContributorProfileFrontmatter(**data)
    except ValidationError as e:
        return None, [add_file_path_to_error(rm.file_path, msg) for msg in format_schema_errors(e)]

    return ContributorProfileReadme(
        file_path=rm.file_path,
        namespace=rm.file_path.parent.name,
        frontmatter=frontmatter,
        body=body,
    ), []


def index_profiles_by_username(
    profiles: List[ContributorProfileReadme],
) -> Tuple[Dict[str, ContributorProfileReadme], List[str]]:
    """Key profiles by GitHub username, reporting every conflicting profile"""
    by_username: Dict[str, ContributorProfileReadme] = {}
    errors = []
    for profile in profiles:
        username = profile.frontmatter.github
        previous = by_username.get(username)
        if previous is not None:
            errors.append(add_file_path_to_error(
                profile.file_path,
                f'GitHub name "{username}" conflicts with field defined in "{previous.file_path}"',
            ))
            continue
        by_username[username] = profile
    return by_username, errors


def validate_contributor_readme(profile: ContributorProfileReadme) -> List[str]:
    """Run every field validator and the body validators over one profile"""
    messages: List[str] = []
    for validator in CONTRIBUTOR_FIELD_VALIDATORS:
        messages.extend(validator(profile.frontmatter))
    messages.extend(validate_readme_body(profile.body))
    messages.extend(validate_gfm_alerts(profile.body))
    return [add_file_path_to_error(profile.file_path, msg) for msg in messages]


def validate_employer_references(profiles: Dict[str, ContributorProfileReadme]) -> List[str]:
    """Every referenced employer must have a profile of its own"""
    employees_by_employer: Dict[str, List[str]] = {}
    for username, profile in sorted(profiles.items()):
        employer = profile.frontmatter.employer_github
        if employer is not None:
            employees_by_employer.setdefault(employer, []).append(username)

    errors = []
    for employer, employees in sorted(employees_by_employer.items()):
        if employer in profiles:
            continue
        errors.append(
            f'company "{employer}" does not exist in registry but is referenced by these profiles: '
            f"[{', '.join(employees)}]"
        )
    return errors


def validate_contributor_relative_urls(profile: ContributorProfileReadme) -> List[str]:
    """Check that a relative avatar URL points to a real image in the namespace"""
    # Missing avatars are backfilled by the Registry site build step
    avatar = profile.frontmatter.avatar
    if avatar is None or not is_relative_url(avatar):
        return []

    error = check_relative_asset(profile.file_path, avatar, "avatar")
    if error is None:
        return []
    return [add_file_path_to_error(profile.file_path, error)]


def build_contributor_profiles(profiles: Dict[str, ContributorProfileReadme]) -> Dict[str, ContributorProfile]:
    """Remap validated READMEs into contributor entities, linking employees to employers"""
    structured: Dict[str, ContributorProfile] = {}
    for username, rm in profiles.items():
        fm = rm.frontmatter
        structured[username] = ContributorProfile(
            github_username=username,
            display_name=fm.display_name,
            bio=fm.bio,
            avatar_url=fm.avatar,
            linkedin_url=fm.linkedin,
            website_url=fm.website,
            support_email=fm.support_email,
            employer_github_username=fm.employer_github,
            status=ContributorStatus(fm.status) if fm.status else ContributorStatus.COMMUNITY,
            file_path=rm.file_path,
        )

    for username in sorted(structured):
        employer = structured[username].employer_github_username
        if employer is not None and employer in structured:
            structured[employer].employee_github_usernames.append(username)
    return structured


def request_avatar_url(github_username: str) -> str:
    """Avatar URL GitHub serves for a user; no request is made"""
    return f"https://github.com/{quote(github_username)}.png"


def backfill_avatar_urls(contributors: Dict[str, ContributorProfile]) -> Tuple[int, int]:
    """Fill in missing avatar URLs.

    Returns the number of avatars that needed a backfill, and the number that
    were backfilled.
    """
    needed = 0
    backfilled = 0
    for username, contributor in contributors.items():
        if contributor.avatar_url:
            continue
        needed += 1
        contributor.avatar_url = request_avatar_url(username)
        backfilled += 1
    return needed, backfilled


def aggregate_contributor_readme_files(registry_dir: Path) -> Tuple[List[Path], List[str]]:
    """Find every namespace's README path; missing READMEs are reported as errors"""
    paths = []
    entries, read_error = list_directory(registry_dir)
    errors = [read_error] if read_error else []
    for entry in entries:
        if not entry.is_dir():
            continue
        readme_path = entry / README_FILENAME
        if not readme_path.is_file():
            errors.append(add_file_path_to_error(readme_path, "file does not exist"))
            continue
        paths.append(readme_path)
    return paths, errors
