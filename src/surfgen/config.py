"""Settings for soap-film runs, loadable from YAML."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Tuple, Union

REFINEMENT_RANGE: Tuple[int, int] = (0, 8)
SMOOTHING_RANGE: Tuple[int, int] = (0, 10)
BOUNDARY_NAMES: Tuple[str, ...] = ("circle", "saddle")


@dataclass
class SoapFilmSettings:
    """Parameters of one :func:`surfgen.soap.relax` run.

    The ranges mirror the interactive controls the algorithm was tuned for;
    larger refinement counts quadruple the triangle count per step.
    """

    refinements: int = 6
    smoothing_steps: int = 2
    boundary: str = "saddle"

    def validate(self) -> "SoapFilmSettings":
        _check_range("refinements", self.refinements, REFINEMENT_RANGE)
        _check_range("smoothing_steps", self.smoothing_steps, SMOOTHING_RANGE)
        if self.boundary not in BOUNDARY_NAMES:
            raise ValueError(f"boundary must be one of {BOUNDARY_NAMES}, got {self.boundary!r}")
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SoapFilmSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown soap film setting(s): {', '.join(unknown)}")
        return cls(**dict(data)).validate()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SoapFilmSettings":
        """Read settings from a YAML file; a ``soap`` section is used if present."""

        import yaml  # local import to avoid hard dependency if unused

        with Path(path).open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
        if isinstance(data.get("soap"), dict):
            data = data["soap"]
        return cls.from_mapping(data)


def _check_range(name: str, value: int, bounds: Tuple[int, int]) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    lo, hi = bounds
    if not lo <= value <= hi:
        raise ValueError(f"{name} must be in [{lo}, {hi}], got {value}")


__all__ = ["BOUNDARY_NAMES", "REFINEMENT_RANGE", "SMOOTHING_RANGE", "SoapFilmSettings"]
