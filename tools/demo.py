#!/usr/bin/env python3
"""
Settlement ledger walkthrough.

Deploys a test token and a ledger, creates a non-expiring settlement,
funds it, releases it, prints the resulting balances and then shows that a
second release is rejected.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from settle_spec.asset import TokenLedger  # noqa: E402
from settle_spec.config import TOKEN_UNIT, LedgerConfig  # noqa: E402
from settle_spec.errors import SettlementError  # noqa: E402
from settle_spec.node import SettlementNode  # noqa: E402
from settle_spec.state import genesis_state  # noqa: E402
from settle_spec.test_accounts import (  # noqa: E402
    ADMIN,
    CUSTODY,
    FEE_RECEIVER,
    FUNDER,
    RECEIVER,
    RELEASER,
    TOKEN,
)
from tools.yaml_dump import dump_state  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _units(amount: int) -> str:
    whole, frac = divmod(amount, TOKEN_UNIT)
    if frac == 0:
        return str(whole)
    return f"{whole}.{str(frac).rjust(18, '0').rstrip('0')}"


@click.command()
@click.option("--fee-percent", type=int, default=None, help="Protocol fee percentage (default: env or 1)")
@click.option("--amount", type=int, default=100, show_default=True, help="Whole TEST units to escrow")
@click.option("--supply", type=int, default=1_000, show_default=True, help="Whole TEST units minted to the funder")
@click.option("--yaml", "show_yaml", is_flag=True, help="Print the final ledger state as YAML")
@click.option("--verbose", is_flag=True, help="Enable verbose output")
def main(
    fee_percent: Optional[int],
    amount: int,
    supply: int,
    show_yaml: bool,
    verbose: bool,
) -> None:
    """Run the settlement walkthrough."""

    # Load config from environment, then override with CLI args
    config = LedgerConfig.from_env()
    config.admin = ADMIN
    config.fee_receiver = FEE_RECEIVER
    config.custody = CUSTODY
    if fee_percent is not None:
        config.fee_percent = fee_percent
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Deploying token used to test the settlement system")
    token = TokenLedger(symbol="TEST")
    token.mint(FUNDER, supply * TOKEN_UNIT)
    logger.info(f"Token deployed at {TOKEN.hex()}")

    logger.info(f"Deploying settlement ledger: fee receiver {FEE_RECEIVER.hex()}, fee {config.fee_percent}%")
    try:
        node = SettlementNode(genesis_state(config, assets={TOKEN: token}))
    except SettlementError as e:
        logger.error(f"Deployment failed: {e}")
        sys.exit(1)

    escrow = amount * TOKEN_UNIT
    try:
        logger.info("Creating a new settlement with no expiry, using the test token")
        sid = node.create(FUNDER, RECEIVER, FUNDER, RELEASER, escrow, TOKEN)

        logger.info(f"Funder balance: {_units(node.balance_of(TOKEN, FUNDER))} TEST")
        logger.info("Approving the ledger to pull the settlement amount")
        node.approve(FUNDER, TOKEN, escrow)

        logger.info("Funding the settlement")
        node.fund(sid, FUNDER)
        logger.info(f"Funder balance after funding: {_units(node.balance_of(TOKEN, FUNDER))} TEST")
        logger.info(f"Receiver balance before release: {_units(node.balance_of(TOKEN, RECEIVER))} TEST")

        logger.info("Releasing the settlement")
        node.release(sid, RELEASER)
    except SettlementError as e:
        logger.error(f"Walkthrough failed: {e}")
        sys.exit(1)

    logger.info(f"Receiver balance after release: {_units(node.balance_of(TOKEN, RECEIVER))} TEST")
    logger.info(f"Fee receiver balance after release: {_units(node.balance_of(TOKEN, FEE_RECEIVER))} TEST")
    logger.info(f"Ledger paused: {node.emergency_pause()}")
    logger.info(f"Ledger fee: {node.fee()}")
    logger.info(f"Number of settlements: {node.get_num_settlements()}")
    for i in range(node.get_num_settlements()):
        logger.info(f"Settlement {i}: {node.get_settlement(i)}")

    logger.info("Trying to release the settlement a second time")
    try:
        node.release(sid, RELEASER)
    except SettlementError as e:
        logger.info(f"Second release rejected: {e}")
    else:
        logger.error("Second release was accepted")
        sys.exit(1)

    if show_yaml:
        click.echo(dump_state(node.snapshot()))


if __name__ == "__main__":
    main()
