"""Backfill explicit parent links for legacy revisions.

Older revisions only point at their original through a free-text breadcrumb.
This command resolves each one with the same rules the listing uses and, with
``--apply``, writes the parent id onto the revision.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contribution_review.config import load_settings
from contribution_review.logging import configure_logging
from contribution_review.review.threads import resolve_parents
from contribution_review.startup import init_database, init_repositories, init_store

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contribution_review.models.contribution import Contribution
    from contribution_review.models.thread import LinkSource
    from contribution_review.store.cosmos import CosmosContributionStore

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    scanned: int = 0
    linked: list[tuple[str, str, LinkSource]] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def plan_links(contributions: list[Contribution]) -> ImportReport:
    """Resolve a parent for every legacy revision in ``contributions``."""
    report = ImportReport(scanned=len(contributions))
    resolved_by_id = resolve_parents(contributions)
    for contribution in contributions:
        if contribution.parent_contribution_id or contribution.id not in resolved_by_id:
            continue
        resolved = resolved_by_id[contribution.id]
        if resolved is None:
            report.unresolved.append(contribution.id)
            continue
        root, source = resolved
        report.linked.append((contribution.id, root.id, source))
    return report


async def run_import(store: CosmosContributionStore, *, apply: bool) -> ImportReport:
    contributions = await store.list_unlinked()
    report = plan_links(contributions)
    by_id = {c.id: c for c in contributions}

    for contribution_id, parent_id, source in report.linked:
        logger.info(
            "%s parent link: contribution=%s parent=%s source=%s",
            "Writing" if apply else "Would write",
            contribution_id,
            parent_id,
            source.value,
        )
        if apply:
            await store.link_parent(by_id[contribution_id], parent_id)
    for contribution_id in report.unresolved:
        logger.warning("Could not resolve parent: contribution=%s", contribution_id)

    logger.info(
        "Import finished: scanned=%d linked=%d unresolved=%d applied=%s",
        report.scanned,
        len(report.linked),
        len(report.unresolved),
        apply,
    )
    return report


async def run(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="contribution-review-import",
        description="Backfill explicit parent links for legacy contribution revisions.",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="write the resolved links (default is a dry run)",
    )
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.app.log_level)

    try:
        cosmos = await init_database(settings)
    except ConnectionError as exc:
        logger.error(str(exc))  # noqa: TRY400
        return 1
    try:
        store = init_store(init_repositories(cosmos))
        report = await run_import(store, apply=args.apply)
    finally:
        await cosmos.close()
    return 0 if not report.unresolved else 2


def main() -> None:
    """Entry point for the importer command."""
    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
