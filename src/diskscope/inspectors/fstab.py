"""fstab: configured mounts. File-based under host_root."""

from pathlib import Path

from ..schema import FstabEntry, FstabSection, SectionStatus


def _int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def _parse_fstab(text: str):
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 3:
            continue
        entries.append(FstabEntry(
            device=parts[0],
            mountpoint=parts[1],
            fstype=parts[2],
            options=parts[3] if len(parts) > 3 else "defaults",
            dump=_int(parts[4]) if len(parts) > 4 else 0,
            passno=_int(parts[5]) if len(parts) > 5 else 0,
        ))
    return entries


def run(host_root: Path) -> FstabSection:
    section = FstabSection()
    fstab = Path(host_root) / "etc/fstab"
    try:
        if not fstab.exists():
            section.mark(SectionStatus.NOT_PRESENT, "/etc/fstab not found")
            return section
        text = fstab.read_text()
    except (PermissionError, OSError) as exc:
        section.mark(SectionStatus.UNAVAILABLE, f"cannot read /etc/fstab: {exc}")
        return section
    section.entries = _parse_fstab(text)
    return section
