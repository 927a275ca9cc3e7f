"""Filesystem summary: the analyzed df records with space and inode usage."""

from ..mounts import MountTable
from ..schema import FilesystemSection, SectionStatus


def run(table: MountTable) -> FilesystemSection:
    section = FilesystemSection(records=list(table.records))
    if table.error and not table.records:
        section.mark(SectionStatus.UNAVAILABLE, f"df failed: {table.error}")
        return section
    for path in table.mountpoints:
        if table.record_for(path) is None:
            section.degrade(f"{path}: not found in the mount table")
    if not section.records and section.status == SectionStatus.OK:
        section.mark(SectionStatus.NOT_PRESENT, "No filesystems matched the selection")
    return section
