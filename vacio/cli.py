"""
Vacio CLI - Command-line interface for the engine.

Usage:
    vacio simulate [--scenario DIR] [--seed N] [--policy NAME]   Play a game headlessly
    vacio validate <scenario_dir>                                Validate a scenario directory
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Vacio - Eco del Vacío solitaire engine",
        prog="vacio",
    )
    parser.add_argument("--verbose", "-v", action="count", default=0, help="More logging (-vv for debug)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a game with a scripted player")
    simulate_parser.add_argument("--scenario", help="Scenario directory (default: built-in scenario)")
    simulate_parser.add_argument("--seed", type=int, help="Random seed")
    simulate_parser.add_argument("--policy", default="greedy", choices=["random", "greedy"], help="Player policy")
    simulate_parser.add_argument("--max-turns", type=int, default=100, help="Stop after this many turns")
    simulate_parser.add_argument("--log", action="store_true", help="Print the game log at the end")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a scenario directory")
    validate_parser.add_argument("scenario_dir", help="Path to scenario directory")

    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "simulate":
        return cmd_simulate(args)
    elif args.command == "validate":
        return cmd_validate(args)
    else:
        parser.print_help()
        return 1


def cmd_simulate(args):
    """Play one game headlessly and print the outcome."""
    from .bots import POLICIES, RandomPolicy, run_simulation
    from .session import SessionManager
    from .spec_schema.scenario import ScenarioLoadError, load_scenario

    scenario = None
    if args.scenario:
        try:
            scenario = load_scenario(args.scenario)
        except ScenarioLoadError as e:
            print(f"Error: {e}")
            return 1

    manager = SessionManager()
    session = manager.create_session(scenario, seed=args.seed)
    if args.policy == "random":
        policy = RandomPolicy(seed=args.seed)
    else:
        policy = POLICIES[args.policy]()

    print(f"Scenario: {session.scenario.name}")
    print(f"Policy: {policy.get_name()}")
    result = run_simulation(session, policy, max_turns=args.max_turns)

    if args.log:
        print("\nGame log:")
        for entry in session.game_log.entries:
            print(f"  [{entry.turn}] {entry.source.value}: {entry.message}")

    if result.victory is None:
        outcome = f"unfinished after {args.max_turns} turns"
    else:
        outcome = "victory" if result.victory else "defeat"
    print(f"\nResult: {outcome}")
    print(f"Turns: {result.turns}")
    print(f"Actions: {result.actions}")
    print(f"PV {result.final_pv}, COR {result.final_sanity}, Eco HP {result.final_eco_hp}")
    manager.end_session(session.session_id)
    return 0


def cmd_validate(args):
    """Validate a scenario directory."""
    from .spec_schema.validation import validate_scenario_dir

    print(f"Validating: {args.scenario_dir}")
    result = validate_scenario_dir(args.scenario_dir)

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        return 1

    print("\nScenario is valid")
    return 0


if __name__ == "__main__":
    sys.exit(main())
