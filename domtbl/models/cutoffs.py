#!/usr/bin/env python3
"""
Per-marker score cutoffs.

Cutoff files use the BUSCO ``scores_cutoff`` layout: one
``marker<TAB>min_score`` record per line.
"""
import os
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Union

from domtbl.exceptions import ConfigurationError, FileOperationError, UnknownMarkerError

logger = logging.getLogger("domtbl.models.cutoffs")

DEFAULT_CUTOFF_FILENAME = "scores_cutoff"


class CutoffTable(Mapping[str, float]):
    """Immutable marker -> minimum score mapping"""

    def __init__(self, cutoffs: Mapping[str, float], name: str = ""):
        self.name = name
        self._cutoffs = MappingProxyType(dict(cutoffs))

    @classmethod
    def parse(cls, text: str, name: str = "") -> 'CutoffTable':
        """Parse a tab-delimited cutoff blob

        Args:
            text: File contents, one ``marker<TAB>score`` per line
            name: Label used in error messages

        Returns:
            CutoffTable instance

        Raises:
            ConfigurationError: If a line is malformed
        """
        cutoffs: Dict[str, float] = {}
        for line_number, line in enumerate(text.split("\n"), start=1):
            line = line.rstrip("\r")
            if not line.strip():
                continue

            parts = line.split("\t")
            if len(parts) < 2:
                raise ConfigurationError(
                    f"Malformed cutoff line {line_number} in {name or '<cutoffs>'}: {line!r}",
                    {"source": name, "line_number": line_number}
                )
            marker, score = parts[0].strip(), parts[1].strip()
            try:
                cutoffs[marker] = float(score)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid cutoff score for {marker} in {name or '<cutoffs>'}: {score!r}",
                    {"source": name, "line_number": line_number, "marker": marker}
                ) from e

        logger.debug(f"Parsed {len(cutoffs)} cutoffs from {name or '<cutoffs>'}")
        return cls(cutoffs, name=name)

    @classmethod
    def from_file(cls, path: Union[str, Path], name: Optional[str] = None) -> 'CutoffTable':
        """Load a cutoff table from a file"""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except OSError as e:
            raise FileOperationError(f"Error reading cutoff file {path}: {str(e)}",
                                     {"file_path": str(path)}) from e
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Cutoff file {path} is not valid UTF-8 text at byte {e.start}",
                                     {"file_path": str(path)}) from e
        return cls.parse(text, name=name or str(path))

    def __getitem__(self, marker: str) -> float:
        try:
            return self._cutoffs[marker]
        except KeyError:
            raise UnknownMarkerError(marker, {"cutoffs": self.name}) from None

    def __contains__(self, marker: object) -> bool:
        return marker in self._cutoffs

    def __iter__(self) -> Iterator[str]:
        return iter(self._cutoffs)

    def __len__(self) -> int:
        return len(self._cutoffs)

    def __repr__(self) -> str:
        return f"CutoffTable(name={self.name!r}, markers={len(self)})"

    def get(self, marker: str, default: Optional[float] = None) -> Optional[float]:
        return self._cutoffs.get(marker, default)

    @property
    def markers(self) -> List[str]:
        return list(self._cutoffs)

    def passes(self, marker: str, score: float) -> bool:
        """Whether a score reaches the marker's cutoff"""
        return score >= self[marker]


class CutoffRegistry:
    """Named cutoff presets resolved to files on disk.

    Presets come from explicit ``name -> path`` entries and from a lineage
    directory laid out as ``<lineages_dir>/<name>/scores_cutoff``.
    """

    def __init__(self, presets: Optional[Mapping[str, str]] = None,
                 lineages_dir: Optional[str] = None,
                 filename: str = DEFAULT_CUTOFF_FILENAME):
        self.lineages_dir = lineages_dir
        self.filename = filename
        self._presets: Dict[str, str] = dict(presets or {})
        self._loaded: Dict[str, CutoffTable] = {}

    def register(self, name: str, path: Union[str, Path]) -> None:
        """Add a custom cutoff file as a named preset"""
        if name in self._loaded:
            del self._loaded[name]
        self._presets[name] = str(path)
        logger.debug(f"Registered cutoff preset {name}: {path}")

    def names(self) -> List[str]:
        """All preset names, explicit ones first"""
        names = list(self._presets)
        if self.lineages_dir and os.path.isdir(self.lineages_dir):
            for entry in sorted(os.listdir(self.lineages_dir)):
                candidate = os.path.join(self.lineages_dir, entry, self.filename)
                if entry not in self._presets and os.path.isfile(candidate):
                    names.append(entry)
        return names

    def path_for(self, name: str) -> str:
        """Resolve a preset name to its cutoff file

        Raises:
            ConfigurationError: If the preset is unknown or its file is missing
        """
        if name in self._presets:
            path = self._presets[name]
        elif self.lineages_dir:
            path = os.path.join(self.lineages_dir, name, self.filename)
        else:
            raise ConfigurationError(f"Unknown cutoff preset: {name}",
                                     {"available": self.names()})

        if not os.path.isfile(path):
            raise ConfigurationError(f"Cutoff file for preset {name} not found: {path}",
                                     {"preset": name, "path": path})
        return path

    def load(self, name: str) -> CutoffTable:
        """Load (and cache) a preset's cutoff table"""
        if name not in self._loaded:
            self._loaded[name] = CutoffTable.from_file(self.path_for(name), name=name)
            logger.info(f"Loaded {len(self._loaded[name])} cutoffs for preset {name}")
        return self._loaded[name]

    def resolve(self, selector: Optional[str]) -> Optional[CutoffTable]:
        """Resolve a preset name or a file path to a cutoff table

        A selector naming an existing file is registered under its stem,
        or under its path when the stem already names a different file.
        None means no score filtering.
        """
        if not selector:
            return None
        if selector not in self._presets and os.path.isfile(selector):
            name = Path(selector).stem
            existing = self._presets.get(name)
            if existing is not None and os.path.abspath(existing) != os.path.abspath(selector):
                logger.warning(f"Cutoff preset {name} already refers to {existing}; "
                               f"registering {selector} under its path")
                name = selector
            self.register(name, selector)
            return self.load(name)
        return self.load(selector)
