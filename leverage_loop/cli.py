"""Command-line interface for the leveraged looping strategy."""
from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal

from .config import AppConfig, load_config
from .errors import StrategyError
from .logging_setup import configure_logging
from .notifications import RecordingEventSink
from .runtime import build_event_bus, build_evm_strategy, build_simulation

UNIT = Decimal(10) ** 18


def to_units(amount: str) -> int:
    """Convert a decimal token amount into 18-decimal base units."""
    return int(Decimal(amount) * UNIT)


def from_units(amount: int) -> str:
    return f"{Decimal(amount) / UNIT:.6f}"


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="leverage-loop",
        description="Leveraged looping strategy: loop deposits, unwind on exit",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    simulate = sub.add_parser("simulate", help="Deposit and withdraw on a simulated chain")
    simulate.add_argument("amount", help="Deposit amount in whole tokens")

    preview = sub.add_parser("preview", help="Show next borrow and delegation for an owner")
    preview.add_argument("--owner", required=True)

    delegate = sub.add_parser("delegate", help="Grant the engine borrowing authority")
    delegate.add_argument("amount", help="Allowance in whole tokens")
    delegate.add_argument("--owner", required=True)

    loop = sub.add_parser("loop", help="Loop collateral held by the engine for an owner")
    loop.add_argument("amount", help="Amount in whole tokens")
    loop.add_argument("--owner", required=True)
    loop.add_argument("--dry-run", action="store_true", help="Revert after running")

    unwind = sub.add_parser("unwind", help="Repay and withdraw an owner's position")
    unwind.add_argument("--owner", required=True)
    unwind.add_argument("--dry-run", action="store_true", help="Revert after running")

    return parser


async def _simulate(config: AppConfig, amount: int) -> None:
    recorder = RecordingEventSink()
    bus = build_event_bus(config)
    bus.subscribe(recorder)
    sim = build_simulation(config, bus)

    user = "0x" + "a11ce".rjust(40, "0")
    sim.vault.add_allocator(user)
    sim.fund(user, amount)
    await sim.delegate(user, 2**255)

    await sim.vault.deposit(sim.strategy, user, user, amount)
    print(f"Deposited {from_units(amount)}: collateral {from_units(await sim.collateral_of(user))},"
          f" debt {from_units(await sim.debt_of(user))}")

    # The unwind repays from the engine's own holdings of the borrowed asset.
    debt = await sim.debt_of(user)
    sim.fund(sim.engine, debt, token=sim.borrowed.address)
    await sim.vault.redeem_all(sim.strategy, user, user, user)
    released = await sim.collateral.balance_of(user)
    print(f"Withdrew {from_units(released)} after repaying {from_units(debt)}")

    for event in recorder.events:
        print(f"  {event.name}")


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "simulate":
        await _simulate(config, to_units(args.amount))
        return

    strategy = build_evm_strategy(config)
    if args.command == "preview":
        p = await strategy.preview_borrow(args.owner)
        print(f"Capacity {from_units(p.capacity)}, next borrow {from_units(p.amount_to_borrow)},"
              f" allowance {from_units(p.allowance)} ({'ok' if p.authorized else 'insufficient'})")
    elif args.command == "delegate":
        await strategy.delegate_credit(
            config.contracts.debt_token, to_units(args.amount), args.owner
        )
    elif args.command == "loop":
        result = await strategy.loop(to_units(args.amount), args.owner, commit=not args.dry_run)
        print(f"Total supplied {from_units(result.total_supplied)}")
    elif args.command == "unwind":
        unwound = await strategy.unwind(args.owner, commit=not args.dry_run)
        print(f"Repaid {from_units(unwound.repaid)}, withdrew {from_units(unwound.withdrawn)}")


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except StrategyError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
