"""Registry README validation pipeline.

Runs the validation phases in order:
- File structure validation
- Filesystem reading
- README parsing
- README validation (frontmatter fields and markdown bodies)
- Cross-referencing (relative asset URLs and employer profiles)

Each phase runs to completion over every README before the next one starts,
and any error in a phase stops the run there. Per-file work inside a phase is
spread over a small worker pool; results are merged back in file path order,
so the report does not depend on worker scheduling.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import click

from readmevalidation.coderresources import (
    SUPPORTED_RESOURCE_TYPES,
    CoderResource,
    aggregate_coder_resource_readme_files,
    parse_coder_resource,
    validate_coder_resource,
    validate_coder_resource_relative_urls,
)
from readmevalidation.config import ValidatorConfig
from readmevalidation.contributors import (
    ContributorProfile,
    ContributorProfileReadme,
    aggregate_contributor_readme_files,
    backfill_avatar_urls,
    build_contributor_profiles,
    index_profiles_by_username,
    parse_contributor_profile,
    validate_contributor_readme,
    validate_contributor_relative_urls,
    validate_employer_references,
)
from readmevalidation.errors import ValidationPhase, ValidationPhaseError, add_file_path_to_error
from readmevalidation.readmefiles import Readme
from readmevalidation.repostructure import validate_repo_structure

CONTRIBUTOR_KIND = "contributors"

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class PhaseReport:
    """Outcome of one validation phase"""
    phase: ValidationPhase
    errors: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors


def read_readme(path: Path) -> Readme:
    return Readme(file_path=path, raw_text=path.read_text(encoding="utf-8"))


class ReadmeValidator:
    """Validates every README in a registry directory"""

    def __init__(self, config: ValidatorConfig):
        self.config = config
        self.registry_dir = config.registry_dir
        self.verbose = config.verbose
        self.phase_reports: List[PhaseReport] = []
        self.failure: Optional[ValidationPhaseError] = None

        self.readmes: List[Tuple[str, Readme]] = []
        self.profiles: Dict[str, ContributorProfileReadme] = {}
        self.resources: Dict[Path, CoderResource] = {}
        self.contributors: Dict[str, ContributorProfile] = {}

    def log(self, message: str, force: bool = False):
        """Log if verbose or forced"""
        if self.verbose or force:
            click.echo(message)

    def _finish_phase(self, phase: ValidationPhase, errors: List[str]):
        self.phase_reports.append(PhaseReport(phase=phase, errors=list(errors)))
        if errors:
            self.log(f"   ✗ {len(errors)} error(s)")
            raise ValidationPhaseError(phase, errors)
        self.log("   ✓ passed")

    async def _map_files(
        self, func: Callable[[T], R], items: Sequence[T], key: Callable[[T], Path]
    ) -> List[Tuple[T, R]]:
        """Run func over items on the worker pool, returning results sorted by file path"""
        semaphore = asyncio.Semaphore(self.config.max_workers)

        async def run_one(item: T) -> R:
            async with semaphore:
                return await asyncio.to_thread(func, item)

        results = await asyncio.gather(*(run_one(item) for item in items))
        return sorted(zip(items, results), key=lambda pair: str(key(pair[0])))

    def check_structure(self):
        self.log(f"\n📂 Validating structure of {self.registry_dir}...")

        errors = validate_repo_structure(self.registry_dir, self.config.icons_dir)
        self._finish_phase(ValidationPhase.STRUCTURE, errors)

    async def load_files(self):
        self.log("\n📄 Reading README files...")
        errors: List[str] = []
        jobs: List[Tuple[str, Path]] = []

        paths, aggregate_errors = aggregate_contributor_readme_files(self.registry_dir)
        errors.extend(aggregate_errors)
        jobs.extend((CONTRIBUTOR_KIND, path) for path in paths)
        for resource_type in SUPPORTED_RESOURCE_TYPES:
            paths, aggregate_errors = aggregate_coder_resource_readme_files(self.registry_dir, resource_type)
            errors.extend(aggregate_errors)
            jobs.extend((resource_type, path) for path in paths)

        def load(job: Tuple[str, Path]):
            try:
                return read_readme(job[1])
            except (OSError, UnicodeDecodeError) as e:
                return add_file_path_to_error(job[1], f"could not read file: {e}")

        for (kind, path), result in await self._map_files(load, jobs, key=lambda job: job[1]):
            if isinstance(result, str):
                errors.append(result)
            else:
                self.readmes.append((kind, result))

        self.log(f"   Found {len(self.readmes)} README files")
        self._finish_phase(ValidationPhase.FILE_LOAD, errors)

    async def parse_files(self):
        self.log("\n🔍 Parsing README frontmatter...")

        def parse(job: Tuple[str, Readme]):
            kind, rm = job
            if kind == CONTRIBUTOR_KIND:
                return parse_contributor_profile(rm)
            return parse_coder_resource(kind, rm)

        errors: List[str] = []
        profiles: List[ContributorProfileReadme] = []
        for _, (parsed, parse_errors) in await self._map_files(parse, self.readmes, key=lambda job: job[1].file_path):
            errors.extend(parse_errors)
            if isinstance(parsed, ContributorProfileReadme):
                profiles.append(parsed)
            elif isinstance(parsed, CoderResource):
                self.resources[parsed.file_path] = parsed

        # Identity keys must be unique across the whole registry
        self.profiles, conflict_errors = index_profiles_by_username(profiles)
        errors.extend(conflict_errors)

        self.log(f"   Parsed {len(self.profiles)} contributor profiles, {len(self.resources)} resources")
        self._finish_phase(ValidationPhase.PARSE, errors)

    async def validate_fields(self):
        self.log("\n✓ Validating README frontmatter and bodies...")

        def validate(item):
            if isinstance(item, ContributorProfileReadme):
                return validate_contributor_readme(item)
            return validate_coder_resource(item)

        items = list(self.profiles.values()) + list(self.resources.values())
        errors: List[str] = []
        for _, item_errors in await self._map_files(validate, items, key=lambda item: item.file_path):
            errors.extend(item_errors)
        self._finish_phase(ValidationPhase.FIELD_VALIDATION, errors)

    async def cross_reference(self):
        self.log("\n🔗 Cross-referencing relative URLs and employers...")
        icons_dir = self.config.icons_dir

        def check(item):
            if isinstance(item, ContributorProfileReadme):
                return validate_contributor_relative_urls(item)
            return validate_coder_resource_relative_urls(item, icons_dir)

        items = list(self.profiles.values()) + list(self.resources.values())
        errors: List[str] = []
        for _, item_errors in await self._map_files(check, items, key=lambda item: item.file_path):
            errors.extend(item_errors)
        errors.extend(validate_employer_references(self.profiles))
        self._finish_phase(ValidationPhase.CROSS_REFERENCE, errors)

    async def run(self) -> bool:
        """Run every phase, stopping at the first phase with errors"""
        try:
            self.check_structure()
            await self.load_files()
            await self.parse_files()
            await self.validate_fields()
            await self.cross_reference()
        except ValidationPhaseError as e:
            self.failure = e
            return False

        self.contributors = build_contributor_profiles(self.profiles)
        needed, backfilled = backfill_avatar_urls(self.contributors)
        self.log(f"\n🖼️  Backfilled {backfilled}/{needed} missing avatar URLs")
        return True

    def generate_report(self) -> Tuple[bool, str]:
        """Generate validation report"""
        lines = []
        lines.append("\n" + "=" * 80)
        lines.append("📊 REGISTRY README VALIDATION REPORT")
        lines.append("=" * 80)

        lines.append(f"\n📂 Registry: {self.registry_dir}")
        counts: Dict[str, int] = {}
        for kind, _ in self.readmes:
            counts[kind] = counts.get(kind, 0) + 1
        lines.append(f"📄 README files read: {len(self.readmes)}")
        lines.append(f"   Contributors: {counts.get(CONTRIBUTOR_KIND, 0)}")
        for resource_type in SUPPORTED_RESOURCE_TYPES:
            lines.append(f"   {resource_type.capitalize()}: {counts.get(resource_type, 0)}")

        lines.append("\n📋 Phases:")
        for report in self.phase_reports:
            mark = "✓" if report.passed else "✗"
            lines.append(f"   {mark} {report.phase.value}")

        if self.failure is not None:
            lines.append(f'\n❌ ERRORS DURING "{self.failure.phase.value}" PHASE ({len(self.failure.errors)}):')
            lines.append("-" * 80)
            for error in self.failure.errors:
                lines.append(f"   ✗ {error}")

        lines.append("\n" + "=" * 80)
        all_valid = self.failure is None
        if all_valid:
            lines.append("✅ SUCCESS: All READMEs valid!")
        else:
            lines.append("❌ FAILURE: Validation errors found")
        lines.append("=" * 80 + "\n")

        return all_valid, "\n".join(lines)

    def validate(self) -> bool:
        """Run full validation pipeline and print the report"""
        asyncio.run(self.run())
        all_valid, report = self.generate_report()
        click.echo(report)
        return all_valid
