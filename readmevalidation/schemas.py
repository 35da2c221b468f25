"""Pydantic schemas for registry README frontmatter.

These only decode frontmatter into typed fields. Any key a schema does not
declare is rejected while parsing, and YAML numbers in string fields are read
as strings. Content rules (URL formats, allowed values and so on) live in
the per-field validators in contributors.py and coderresources.py, so that
every rule can report independently.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ContributorProfileFrontmatter(BaseModel):
    """Schema for a contributor (namespace) README.

    All keys are optional at the schema level; required-ness is enforced by
    the field validators so that it is reported alongside every other problem.
    """

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    display_name: str = Field("", description="Name shown for the contributor in the Registry site")
    bio: str = Field("", description="Short contributor biography")
    github: str = Field("", description="GitHub username of the contributor; the profile's identity key")
    avatar: Optional[str] = Field(
        None,
        description="Avatar image URL. Relative paths must stay inside the contributor's namespace directory",
    )
    linkedin: Optional[str] = Field(None, description="Absolute LinkedIn profile URL")
    website: Optional[str] = Field(None, description="Absolute website URL")
    support_email: Optional[str] = Field(None, description="Support email address")
    employer_github: Optional[str] = Field(
        None, description="GitHub username of the contributor's employer. Must have its own profile"
    )
    status: Optional[str] = Field(None, description="One of official, partner or community (default)")


class CoderResourceFrontmatter(BaseModel):
    """Schema for a module or template README."""

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    description: str = Field("", description="Short description shown on the resource card")
    icon: str = Field(
        "",
        description="Icon URL. Relative paths must point into the resource directory or the shared .icons directory",
    )
    display_name: Optional[str] = Field(None, description="Name shown for the resource. Omit or make non-empty")
    verified: Optional[bool] = Field(None, description="Whether the resource has been verified by Coder")
    tags: Optional[list[str]] = Field(
        None, description="Filter tags for the Registry site. Must be present; may be an empty list"
    )
    supported_os: list[str] = Field(
        default_factory=list, description="Operating systems the resource supports (windows, macos, linux)"
    )


def format_schema_errors(error: ValidationError) -> list[str]:
    """Turn pydantic validation errors into one readable message per field"""
    messages = []
    for detail in error.errors():
        field = ".".join(str(loc) for loc in detail["loc"])
        if detail["type"] == "extra_forbidden":
            messages.append(f"Frontmatter field '{field}' is not supported")
        else:
            messages.append(f"Frontmatter field '{field}': {detail['msg']}")
    return messages
