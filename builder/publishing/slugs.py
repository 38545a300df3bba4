"""Slug derivation and validation for publish subdomains."""

from collections.abc import Awaitable, Callable, Iterator
import hashlib
import re

SLUG_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,46}[a-z0-9])?$")
MAX_SLUG_LENGTH = 48
DEFAULT_BASE = "project"
MIN_SUFFIX_LENGTH = 6

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _NON_ALNUM_RE.sub("-", name.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def normalize_slug(raw: str) -> str:
    return raw.strip().lower()


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_RE.match(slug))


def candidate_slugs(base: str, project_id: str) -> Iterator[str]:
    """Deterministic candidates: the base, then base + longer digest suffixes.

    Suffixes are prefixes of the project id's SHA-256 hex digest, so two
    projects sharing a base diverge after a few characters.
    """
    base = base or DEFAULT_BASE
    if is_valid_slug(base):
        yield base
    digest = hashlib.sha256(project_id.encode("utf-8")).hexdigest()
    for length in range(MIN_SUFFIX_LENGTH, MAX_SLUG_LENGTH - 1, 2):
        suffix = digest[:length]
        head = base[: MAX_SLUG_LENGTH - len(suffix) - 1].rstrip("-") or DEFAULT_BASE[:1]
        yield f"{head}-{suffix}"


async def unique_slug(
    base: str, project_id: str, is_taken: Callable[[str], Awaitable[bool]]
) -> str:
    """First candidate slug no other project owns."""
    for candidate in candidate_slugs(base, project_id):
        if not await is_taken(candidate):
            return candidate
    raise RuntimeError(f"No free slug derivable from {base!r}")
