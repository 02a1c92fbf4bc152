import argparse
import logging
import sys

from .app import create_app
from .config import load_config
from .display import memory_table, plot_registers, register_table
from .simulator import Simulator, State


def build_simulator(program_path, config):
    with open(program_path, 'r', encoding='utf-8') as f:
        lines = f.read().splitlines()
    sim = Simulator(config)
    sim.load_program(lines)
    return sim


def print_results(sim, memory_words=0):
    print("\n=== Simulation Results ===")
    print(register_table(sim.registers.values()))
    print(f"HI: {sim.core.hi}")

    summary = sim.last_run
    if summary:
        print(f"\nNumber of clock cycles: {summary['cycles']} ({summary['reason']})")
        print("\n=== Performance Metrics ===")
        print(f"Instructions: {summary['instructions']}, Stalls: {summary['stalls']}, "
              f"Flushes: {summary['flushes']}, IPC: {summary['ipc']:.3f}")

    if memory_words:
        print("\nMemory:")
        print(memory_table(sim.memory.dump(0, memory_words)))

    errors = sim.errors.drain()
    if errors:
        print(f"\n{len(errors)} error(s) reported:")
        for error in errors:
            print(f"  {type(error).__name__}: {error}")


def step_interactively(sim):
    """One cycle per Enter; 'q' stops."""
    while True:
        line = sim.step_once()
        stages = sim.core.stage_view()
        print(f"cycle {sim.core.cycles:>5}  line {line if line is not None else '-':>4}  "
              + "  ".join(f"{name}: {raw:<16}" for name, raw in stages.items()))
        if sim.state is State.HALTED:
            break
        if input().strip().lower() == "q":
            sim.stop()
            break


def cli(argv=None):
    arg_parser = argparse.ArgumentParser(description="Simulate a MIPS-like program on a 5 stage pipeline.")
    arg_parser.add_argument("program", nargs="?", help="Path to the .asm program.")
    arg_parser.add_argument("--config", help="YAML configuration file.")
    arg_parser.add_argument("--speed", type=int, help="Milliseconds between cycles (default 0 here, the config value for --serve).")
    arg_parser.add_argument("--cycle-limit", type=int, help="Maximum number of cycles before halting.")
    arg_parser.add_argument("--no-forwarding", action="store_true",
                            help="Decode reads the register file only, exposing data hazards.")
    arg_parser.add_argument("--step", action="store_true", help="Advance one cycle per Enter key.")
    arg_parser.add_argument("--memory", type=int, default=0, metavar="WORDS",
                            help="Print this many memory words after the run.")
    arg_parser.add_argument("--plot", nargs="?", const="", metavar="PATH",
                            help="Plot the registers; save to PATH when given.")
    arg_parser.add_argument("--serve", action="store_true", help="Serve the HTTP API instead of running.")
    arg_parser.add_argument("--port", type=int, default=5000)
    arg_parser.add_argument("-v", "--verbose", action="store_true")
    args = arg_parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config,
                             execution_speed=args.speed,
                             cycle_limit=args.cycle_limit,
                             forwarding=False if args.no_forwarding else None)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.serve:
        sim = build_simulator(args.program, config) if args.program else Simulator(config)
        create_app(sim).run(port=args.port)
        return 0

    if not args.program:
        arg_parser.error("a program file is required unless --serve is given")

    try:
        sim = build_simulator(args.program, config)
    except FileNotFoundError:
        print(f"Error: Input file not found: {args.program}", file=sys.stderr)
        return 1

    if args.step:
        step_interactively(sim)
    else:
        sim.run(args.speed if args.speed is not None else 0)

    print_results(sim, args.memory)

    if args.plot is not None:
        plot_registers(sim.registers.values(), path=args.plot or None)
    return 0


if __name__ == "__main__":
    sys.exit(cli())
