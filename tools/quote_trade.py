#!/usr/bin/env python3
"""
Offline incentive quote for a single trade.

Loads a config profile, runs the pure controller step against a fresh epoch and
prints the decision as JSON. No ledger is touched.

    python tools/quote_trade.py --profile mainnet --reserve 1000000 --price 0.6 --amount-in 10000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from tradeincentive.core.controller import CheckResult, conduct_checks
from tradeincentive.core.trade import TradeContext
from tradeincentive.errors import IncentiveError
from tradeincentive.integration.config_file import load_config, parse_fixed_point
from tradeincentive.state.epoch import init_epoch_state


REPO_ROOT = Path(__file__).resolve().parents[1]

logger = logging.getLogger("quote_trade")


def _result_json(result: CheckResult) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "direction": result.direction.value,
        "penalty": str(result.penalty),
        "reward": str(result.reward_amount),
        "transfers": [
            {
                "kind": t.kind.value,
                "from": t.sender,
                "to": t.recipient,
                "amount": str(t.amount),
            }
            for t in result.transfers
        ],
    }
    if result.split is not None:
        out["keep"] = str(result.split.keep_amount)
        out["redirect"] = str(result.split.redirect_amount)
    if result.reward is not None:
        out["raw_reward"] = str(result.reward.raw_amount)
        out["remaining_budget_before"] = str(result.reward.remaining_before)
    return out


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument(
        "--config",
        default=str(REPO_ROOT / "config" / "incentive_profiles.yaml"),
        help="YAML profile file",
    )
    p.add_argument("--profile", default="mainnet", help="Profile name inside the config file")
    p.add_argument("--reserve", required=True, help="Protocol-token reserve (tokens)")
    p.add_argument("--price", required=True, help="Post-swap price of the protocol token")
    p.add_argument("--amount-in", default="0", help="Protocol tokens sold into the pool")
    p.add_argument("--amount-out", default="0", help="Protocol tokens bought from the pool")
    p.add_argument("--recipient", default="trader", help="Trader account id")
    p.add_argument("--log-level", default="WARNING", help="Python logging level")
    args = p.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config, args.profile)
        trade = TradeContext(
            reserve=parse_fixed_point(args.reserve, name="reserve"),
            price=parse_fixed_point(args.price, name="price"),
            amount_out=parse_fixed_point(args.amount_out, name="amount_out"),
            amount_in=parse_fixed_point(args.amount_in, name="amount_in"),
            recipient=args.recipient,
        )
        now = int(time.time())
        result = conduct_checks(
            config,
            init_epoch_state(now, config.epoch_seconds),
            trade,
            now=now,
            controller_account="controller",
        )
    except (IncentiveError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    json.dump(_result_json(result), sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
