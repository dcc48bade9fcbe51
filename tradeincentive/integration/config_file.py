"""
YAML configuration profiles for the incentive controller.

File layout:

    profiles:
      <name>:
        incentive_token: "0x..."
        ecosystem_fund: "0x..."
        reward_per_epoch: "500"          # tokens, converted to 18-dec fixed point
        penalty_target_price: "1.0"
        epoch_seconds: 43200
        ...

Fixed-point fields accept either a raw integer (already in 18-decimal units) or a
decimal string in whole tokens. YAML floats are rejected, because `0.6` written
as a float cannot be converted exactly. Unknown keys are rejected.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from decimal import Decimal, InvalidOperation, localcontext
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from ..errors import InvalidParameter
from ..state.config import FIXED_POINT_ONE, IncentiveConfig


logger = logging.getLogger(__name__)

FIXED_POINT_FIELDS = frozenset(
    {
        "penalty_target_price",
        "reward_target_price",
        "expected_volume_per_epoch",
        "reward_per_epoch",
        "protocol_to_incentive_price",
    }
)
INT_FIELDS = frozenset(
    {
        "penalty_multiplier",
        "reward_multiplier",
        "epoch_seconds",
        "penalty_keep_percent",
        "penalty_redirect_percent",
    }
)
ACCOUNT_FIELDS = frozenset({"incentive_token", "ecosystem_fund", "pair", "protocol_token"})

_KNOWN_FIELDS = frozenset(f.name for f in fields(IncentiveConfig))


def parse_fixed_point(value: Any, *, name: str) -> int:
    """Convert an int (raw units) or a decimal token string to 18-dec fixed point."""
    if isinstance(value, bool):
        raise InvalidParameter(f"{name} must be an int or decimal string, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise InvalidParameter(f"{name} must be quoted; floats are not exact: {value!r}")
    if not isinstance(value, str):
        raise InvalidParameter(f"{name} must be an int or decimal string")
    try:
        d = Decimal(value.strip().replace("_", ""))
    except InvalidOperation as exc:
        raise InvalidParameter(f"{name} is not a decimal: {value!r}") from exc
    if not d.is_finite():
        raise InvalidParameter(f"{name} must be finite: {value!r}")
    with localcontext() as ctx:
        ctx.prec = 96
        try:
            scaled = d * FIXED_POINT_ONE
            integral = scaled.to_integral_value()
        except ArithmeticError as exc:
            raise InvalidParameter(f"{name} is out of range: {value!r}") from exc
        if scaled != integral:
            raise InvalidParameter(f"{name} has more than 18 decimals: {value!r}")
        return int(scaled)


def config_from_mapping(data: Mapping[str, Any]) -> IncentiveConfig:
    """Build an `IncentiveConfig` from a parsed profile mapping."""
    if not isinstance(data, Mapping):
        raise InvalidParameter("profile must be a mapping")
    unknown = sorted(set(data) - _KNOWN_FIELDS)
    if unknown:
        raise InvalidParameter(f"unknown config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key in FIXED_POINT_FIELDS:
            kwargs[key] = parse_fixed_point(value, name=key)
        elif key in INT_FIELDS:
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidParameter(f"{key} must be an int")
            kwargs[key] = value
        elif key in ACCOUNT_FIELDS:
            if not isinstance(value, str):
                raise InvalidParameter(f"{key} must be a string (quote hex addresses)")
            kwargs[key] = value.strip()

    try:
        return IncentiveConfig(**kwargs)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter(str(exc)) from exc


def load_profiles(path: Path | str) -> Dict[str, IncentiveConfig]:
    """Load every profile from a YAML file."""
    p = Path(path)
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise InvalidParameter(f"{p}: malformed YAML: {exc}") from exc
    if not isinstance(obj, Mapping) or not isinstance(obj.get("profiles"), Mapping):
        raise InvalidParameter(f"{p}: expected a top-level 'profiles' mapping")

    out: Dict[str, IncentiveConfig] = {}
    for name, body in obj["profiles"].items():
        try:
            out[str(name)] = config_from_mapping(body or {})
        except InvalidParameter as exc:
            raise InvalidParameter(f"{p}: profile {name!r}: {exc}") from exc
    logger.debug("loaded %d profile(s) from %s", len(out), p)
    return out


def load_config(path: Path | str, profile: str) -> IncentiveConfig:
    """Load one named profile from a YAML file."""
    profiles = load_profiles(path)
    if profile not in profiles:
        raise InvalidParameter(f"profile {profile!r} not found; available: {sorted(profiles)}")
    return profiles[profile]
