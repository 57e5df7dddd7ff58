from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List, Mapping

from .errors import WorkloadError
from .models import ProcessDescriptor


def load_workload(path: str | Path) -> List[ProcessDescriptor]:
    """
    Load a workload from a JSON or CSV file into validated process descriptors.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        entries = _load_json(path)
    elif suffix == ".csv":
        entries = _load_csv(path)
    else:
        raise WorkloadError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    return parse_descriptors(entries)


def parse_descriptors(entries: List[Mapping]) -> List[ProcessDescriptor]:
    descriptors = [_descriptor_from_mapping(entry, index) for index, entry in enumerate(entries, start=1)]

    seen = set()
    for d in descriptors:
        if d.pid in seen:
            raise WorkloadError(f"Duplicate process id: {d.pid}")
        seen.add(d.pid)

    return descriptors


def _load_json(path: Path) -> List[Mapping]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise WorkloadError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(raw, list):
        raise WorkloadError("JSON workload must be a list of process objects")
    return raw


def _load_csv(path: Path) -> List[Mapping]:
    with path.open("r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))


def _descriptor_from_mapping(mapping, index: int) -> ProcessDescriptor:
    try:
        pid_val = mapping.get("pid")
        pid = str(pid_val).strip() if pid_val not in (None, "") else f"P{index}"
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
        priority_val = mapping.get("priority")
        priority = int(priority_val) if priority_val not in (None, "") else 0
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise WorkloadError(f"Invalid process entry: {mapping!r}") from exc

    if arrival_time < 0:
        raise WorkloadError(f"{pid}: arrival_time must be >= 0, got {arrival_time}")
    if burst_time <= 0:
        raise WorkloadError(f"{pid}: burst_time must be positive, got {burst_time}")

    return ProcessDescriptor(
        pid=pid,
        arrival_time=arrival_time,
        burst_time=burst_time,
        priority=priority,
    )
