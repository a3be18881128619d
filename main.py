#!/usr/bin/env python3
"""
Sliding-Window ARQ Simulator - Main Entry Point

This is the main CLI interface for the Go-Back-N / Selective-Repeat
simulator. It provides options for:
- Single simulation runs (with an optional round-by-round trace)
- Side-by-side discipline comparison
- Full parameter sweep
- Visualization generation

Usage:
    python main.py --single --frames 5 --window 3 --loss 0.3 --trace
    python main.py --compare --frames 20 --window 4
    python main.py --sweep --runs 10
    python main.py --visualize --csv results.csv
"""

import argparse
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    DEFAULT_TOTAL_FRAMES, DEFAULT_WINDOW_SIZE, DEFAULT_LOSS_PROBABILITY,
    DEFAULT_DISCIPLINE, RNG_SEED_BASE, RUNS_PER_CONFIGURATION,
    SWEEP_TOTAL_FRAMES, RESULTS_CSV, PLOTS_DIR
)


def _build_config(args, discipline=None):
    from simulation.simulator import SimulatorConfig
    from src.utils.logger import LogLevel

    return SimulatorConfig(
        total_frames=args.frames,
        window_size=args.window,
        discipline=discipline or args.discipline,
        loss_probability=args.loss,
        burst_loss=args.burst,
        max_rounds=args.max_rounds,
        seed=args.seed,
        log_level=LogLevel.INFO if args.verbose else LogLevel.WARNING,
        trace=args.trace
    )


def _print_results(results):
    metrics = results['metrics']
    print(f"\nTransfer Status:")
    print(f"  Complete: {results['complete']} ({results['state']})")
    print(f"  Rounds: {results['rounds']}")
    print(f"  Final Base: {results['final_base']}")

    print(f"\nFrame Statistics:")
    print(f"  Transmissions: {metrics['transmissions']}")
    print(f"  Retransmissions: {metrics['retransmissions']}")
    print(f"  Lost: {metrics['frames_lost']}")
    print(f"  Discarded (out of order): {metrics['frames_discarded']}")
    print(f"  Timeouts: {metrics['timeouts']}")
    print(f"  Efficiency: {metrics['efficiency'] * 100:.2f}%")


def run_single_simulation(args):
    """Run a single simulation with specified parameters."""
    from simulation.simulator import Simulator

    config = _build_config(args)

    print("=" * 60)
    print("SLIDING-WINDOW ARQ SIMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Discipline: {config.discipline}")
    print(f"  Total frames: {config.total_frames}")
    print(f"  Window size: {config.window_size}")
    print(f"  Loss model: {'Gilbert-Elliott burst' if config.burst_loss else f'Bernoulli p={config.loss_probability}'}")
    print(f"  Max rounds: {config.max_rounds or 'unbounded'}")
    print(f"  Seed: {config.seed}")

    print("\nRunning simulation...\n")

    sim = Simulator(config)
    start_time = time.time()
    results = sim.run()
    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    _print_results(results)
    print(f"  Real Time: {elapsed:.4f} s")

    return results


def run_comparison(args):
    """Run Go-Back-N and Selective-Repeat back to back on the same seed."""
    from simulation.simulator import Simulator
    from src.arq.window import Discipline

    all_results = {}
    for discipline in Discipline:
        print("=" * 60)
        print(f"{discipline.label.upper()} SIMULATION")
        print("=" * 60)
        results = Simulator(_build_config(args, discipline.value)).run()
        _print_results(results)
        print()
        all_results[discipline.value] = results

    gbn = all_results['go_back_n']['metrics']
    sr = all_results['selective_repeat']['metrics']
    print("=" * 60)
    print("COMPARISON")
    print("=" * 60)
    print(f"  {'':20s}{'Go-Back-N':>14s}{'Selective':>14s}")
    for key in ('rounds', 'transmissions', 'retransmissions', 'frames_discarded'):
        print(f"  {key:20s}{gbn[key]:>14d}{sr[key]:>14d}")
    print(f"  {'efficiency':20s}{gbn['efficiency']:>14.3f}{sr['efficiency']:>14.3f}")

    return all_results


def run_parameter_sweep(args):
    """Run full parameter sweep."""
    from simulation.runner import BatchRunner

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)

    if args.quick:
        runner = BatchRunner(
            window_sizes=[2, 4, 8],
            loss_probabilities=[0.0, 0.1, 0.3],
            runs_per_config=3,
            total_frames=50,
            output_file=args.output or RESULTS_CSV
        )
    else:
        runner = BatchRunner(
            runs_per_config=args.runs,
            total_frames=args.sweep_frames,
            output_file=args.output or RESULTS_CSV
        )

    print(f"\nConfiguration:")
    print(f"  Disciplines: {runner.disciplines}")
    print(f"  Window sizes: {runner.window_sizes}")
    print(f"  Loss probabilities: {runner.loss_probabilities}")
    print(f"  Runs per config: {runner.runs_per_config}")
    print(f"  Frames per run: {runner.total_frames}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Output: {runner.output_file}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    runner.save_results()

    print("\n" + "=" * 60)
    print("FEWEST ROUNDS PER LOSS PROBABILITY")
    print("=" * 60)
    for discipline in runner.disciplines:
        for loss in runner.loss_probabilities:
            best = runner.get_optimal_configuration(discipline, loss)
            if 'error' in best:
                continue
            print(f"  {discipline:17s} p={loss:<5} W={best['window_size']:<3d} "
                  f"rounds={best['mean_rounds']:.1f} "
                  f"efficiency={best['mean_efficiency'] * 100:.1f}%")

    return results


def generate_visualizations(args):
    """Generate visualization plots."""
    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python main.py --sweep")
        return

    from visualization.heatmap import EfficiencyHeatmap
    from visualization.comparison_plot import DisciplineComparisonPlot

    os.makedirs(PLOTS_DIR, exist_ok=True)

    heatmap = EfficiencyHeatmap(csv_file=csv_file)
    print(f"Loaded {len(heatmap.results)} results from {csv_file}")

    print("\nGenerating heatmaps...")
    efficiency_file = heatmap.plot(metric='efficiency')
    rounds_file = heatmap.plot(metric='rounds', cmap='magma_r')

    print("Generating comparison plots...")
    comparison = DisciplineComparisonPlot(results=heatmap.results)
    rounds_cmp = comparison.plot(metric='rounds')
    eff_cmp = comparison.plot(metric='efficiency')

    print("\n" + "=" * 60)
    print("VISUALIZATIONS GENERATED")
    print("=" * 60)
    print(f"  Efficiency heatmap: {efficiency_file}")
    print(f"  Rounds heatmap: {rounds_file}")
    print(f"  Rounds comparison: {rounds_cmp}")
    print(f"  Efficiency comparison: {eff_cmp}")


def show_config(args):
    """Display current configuration."""
    import config as cfg

    print("=" * 60)
    print("SIMULATOR CONFIGURATION")
    print("=" * 60)

    print(f"\nDemo Run:")
    print(f"  Total Frames: {cfg.DEFAULT_TOTAL_FRAMES}")
    print(f"  Window Size: {cfg.DEFAULT_WINDOW_SIZE}")
    print(f"  Loss Probability: {cfg.DEFAULT_LOSS_PROBABILITY}")
    print(f"  Discipline: {cfg.DEFAULT_DISCIPLINE}")

    print(f"\nGilbert-Elliott Loss Model:")
    print(f"  Good State Loss: {cfg.GOOD_STATE_LOSS}")
    print(f"  Bad State Loss: {cfg.BAD_STATE_LOSS}")
    print(f"  P(Good→Bad): {cfg.P_GOOD_TO_BAD}")
    print(f"  P(Bad→Good): {cfg.P_BAD_TO_GOOD}")
    print(f"  Average Loss: {cfg.calculate_average_loss():.4f}")

    print(f"\nParameter Sweep:")
    print(f"  Disciplines: {cfg.DISCIPLINES}")
    print(f"  Window Sizes: {cfg.WINDOW_SIZES}")
    print(f"  Loss Probabilities: {cfg.LOSS_PROBABILITIES}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")

    print(f"\nExpected transmissions per frame (Selective Repeat):")
    for p in cfg.LOSS_PROBABILITIES:
        print(f"  p={p}: {cfg.expected_transmissions_per_frame(p):.3f}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Sliding-Window ARQ Simulator (Go-Back-N / Selective Repeat)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Classic demo with a trace of every round:
    python main.py --single --trace

  Both disciplines on the same channel:
    python main.py --compare --frames 20 --window 4 --loss 0.2

  Quick parameter sweep (for testing):
    python main.py --sweep --quick

  Parallel parameter sweep:
    python main.py --sweep --parallel --workers 4

  Generate visualizations:
    python main.py --visualize
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single simulation')
    mode.add_argument('--compare', action='store_true',
                      help='Run Go-Back-N and Selective Repeat side by side')
    mode.add_argument('--sweep', action='store_true',
                      help='Run parameter sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')

    # Simulation options
    parser.add_argument('--frames', '-n', type=int, default=DEFAULT_TOTAL_FRAMES,
                        help=f'Total frames (default: {DEFAULT_TOTAL_FRAMES})')
    parser.add_argument('--window', '-w', type=int, default=DEFAULT_WINDOW_SIZE,
                        help=f'Window size (default: {DEFAULT_WINDOW_SIZE})')
    parser.add_argument('--loss', '-l', type=float, default=DEFAULT_LOSS_PROBABILITY,
                        help=f'Loss probability (default: {DEFAULT_LOSS_PROBABILITY})')
    parser.add_argument('--discipline', '-d', default=DEFAULT_DISCIPLINE,
                        help='go_back_n | selective_repeat | gbn | sr')
    parser.add_argument('--seed', '-s', type=int, default=RNG_SEED_BASE,
                        help=f'Random seed (default: {RNG_SEED_BASE})')
    parser.add_argument('--max-rounds', type=int, default=None,
                        help='Give up after this many rounds')
    parser.add_argument('--burst', action='store_true',
                        help='Use the Gilbert-Elliott burst loss model')
    parser.add_argument('--trace', action='store_true',
                        help='Print every simulation event')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--sweep-frames', type=int, default=SWEEP_TOTAL_FRAMES,
                        help=f'Frames per sweep run (default: {SWEEP_TOTAL_FRAMES})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    from src.exceptions import ConfigurationError

    try:
        if args.single:
            run_single_simulation(args)
        elif args.compare:
            run_comparison(args)
        elif args.sweep:
            run_parameter_sweep(args)
        elif args.visualize:
            generate_visualizations(args)
        elif args.config:
            show_config(args)
    except ConfigurationError as e:
        parser.error(str(e))


if __name__ == "__main__":
    main()
