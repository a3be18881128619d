"""
Batch Runner for Parameter Sweep Simulations

This module implements the batch runner that executes every
(discipline, window size, loss probability) combination several times.
"""

import os
import csv
import time
import statistics
from typing import Optional, Callable, List, Dict, Tuple
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing
import sys

from tqdm import tqdm

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    WINDOW_SIZES, LOSS_PROBABILITIES, DISCIPLINES, RUNS_PER_CONFIGURATION,
    SWEEP_TOTAL_FRAMES, SWEEP_MAX_ROUNDS, RNG_SEED_BASE, RESULTS_CSV
)
from simulation.simulator import Simulator, SimulatorConfig
from src.utils.logger import LogLevel


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    discipline: str
    window_size: int
    loss_probability: float
    run_id: int
    seed: int
    total_frames: int
    max_rounds: Optional[int]


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    row = {
        'discipline': run_config.discipline,
        'window_size': run_config.window_size,
        'loss_probability': run_config.loss_probability,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
    }
    try:
        config = SimulatorConfig(
            total_frames=run_config.total_frames,
            window_size=run_config.window_size,
            discipline=run_config.discipline,
            loss_probability=run_config.loss_probability,
            max_rounds=run_config.max_rounds,
            seed=run_config.seed,
            log_level=LogLevel.ERROR  # Minimal logging for batch runs
        )

        results = Simulator(config).run()
        metrics = results['metrics']

        row.update({
            'total_frames': run_config.total_frames,
            'rounds': results['rounds'],
            'transmissions': metrics['transmissions'],
            'retransmissions': metrics['retransmissions'],
            'frames_lost': metrics['frames_lost'],
            'frames_discarded': metrics['frames_discarded'],
            'timeouts': metrics['timeouts'],
            'efficiency': metrics['efficiency'],
            'retransmission_rate': metrics['retransmission_rate'],
            'avg_window_advance': metrics['avg_window_advance'],
            'complete': results['complete'],
            'error': None
        })
    except Exception as e:
        row.update({'efficiency': 0, 'complete': False, 'error': str(e)})
    return row


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (discipline, W, p) combinations with multiple runs each.

    Attributes:
        disciplines: Disciplines to test
        window_sizes: List of window sizes to test
        loss_probabilities: List of loss probabilities to test
        runs_per_config: Number of runs per configuration
        total_frames: Frames transferred per run
    """

    def __init__(
        self,
        disciplines: List[str] = None,
        window_sizes: List[int] = None,
        loss_probabilities: List[float] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        total_frames: int = SWEEP_TOTAL_FRAMES,
        max_rounds: Optional[int] = SWEEP_MAX_ROUNDS,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None,
        show_progress: bool = True
    ):
        """
        Initialize batch runner.

        Args:
            disciplines: Disciplines (default from config)
            window_sizes: List of window sizes (default from config)
            loss_probabilities: List of loss probabilities (default from config)
            runs_per_config: Number of runs per (discipline, W, p) triple
            total_frames: Frames per run
            max_rounds: Round cap per run
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
            show_progress: Display a tqdm progress bar
        """
        self.disciplines = disciplines or DISCIPLINES
        self.window_sizes = window_sizes or WINDOW_SIZES
        self.loss_probabilities = (loss_probabilities if loss_probabilities is not None
                                   else LOSS_PROBABILITIES)
        self.runs_per_config = runs_per_config
        self.total_frames = total_frames
        self.max_rounds = max_rounds
        self.output_file = output_file
        self.on_progress = on_progress
        self.show_progress = show_progress

        # Results storage
        self.results: List[Dict] = []

        # Progress tracking
        self.total_runs = (len(self.disciplines) *
                           len(self.window_sizes) *
                           len(self.loss_probabilities) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        configs = []

        for discipline in self.disciplines:
            for window_size in self.window_sizes:
                for p_idx, loss in enumerate(self.loss_probabilities):
                    for run_id in range(self.runs_per_config):
                        # Same seed for both disciplines so they face the same draws
                        seed = (RNG_SEED_BASE +
                                window_size * 1000 +
                                p_idx * 100 +
                                run_id * 100000)

                        configs.append(RunConfig(
                            discipline=discipline,
                            window_size=window_size,
                            loss_probability=loss,
                            run_id=run_id,
                            seed=seed,
                            total_frames=self.total_frames,
                            max_rounds=self.max_rounds
                        ))

        return configs

    def _record(self, result: Dict):
        self.results.append(result)
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, result)

    def run_sequential(self) -> List[Dict]:
        """
        Run all simulations sequentially.

        Returns:
            List of result dictionaries
        """
        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        for config in tqdm(configs, desc="Simulations", disable=not self.show_progress):
            self._record(run_single_simulation(config))

        total_time = time.time() - self.start_time
        if self.show_progress:
            print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def run_parallel(self, max_workers: Optional[int] = None) -> List[Dict]:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            List of result dictionaries
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(run_single_simulation, config): config
                for config in configs
            }

            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Simulations", disable=not self.show_progress):
                self._record(future.result())

        total_time = time.time() - self.start_time
        if self.show_progress:
            print(f"Completed {self.total_runs} simulations in {total_time:.1f}s "
                  f"with {max_workers} workers")

        return self.results

    def save_results(self, filepath: Optional[str] = None) -> Optional[str]:
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)

        Returns:
            Path written, or None if there was nothing to save
        """
        filepath = filepath or self.output_file

        if not self.results:
            print("No results to save!")
            return None

        out_dir = os.path.dirname(filepath)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)

        # Union of keys, first-seen order (error rows have fewer columns)
        fieldnames = []
        for result in self.results:
            for key in result:
                if key not in fieldnames:
                    fieldnames.append(key)

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(self.results)

        print(f"Results saved to: {filepath}")
        return filepath

    def get_aggregated_results(self) -> Dict[Tuple[str, int, float], Dict]:
        """
        Get aggregated results by (discipline, W, p).

        Returns:
            Dictionary with aggregated statistics
        """
        aggregated = {}

        for result in self.results:
            if result.get('error'):
                continue

            key = (result['discipline'], result['window_size'], result['loss_probability'])
            if key not in aggregated:
                aggregated[key] = {
                    'discipline': result['discipline'],
                    'window_size': result['window_size'],
                    'loss_probability': result['loss_probability'],
                    'efficiencies': [],
                    'rounds': [],
                    'retransmissions': [],
                    'completed': 0
                }

            data = aggregated[key]
            data['efficiencies'].append(result['efficiency'])
            data['rounds'].append(result['rounds'])
            data['retransmissions'].append(result['retransmissions'])
            if result['complete']:
                data['completed'] += 1

        for data in aggregated.values():
            effs = data['efficiencies']
            data['efficiency_mean'] = statistics.mean(effs)
            data['efficiency_std'] = statistics.stdev(effs) if len(effs) > 1 else 0
            data['rounds_mean'] = statistics.mean(data['rounds'])
            data['retx_mean'] = statistics.mean(data['retransmissions'])

        return aggregated

    def get_optimal_configuration(
        self,
        discipline: Optional[str] = None,
        loss_probability: Optional[float] = None
    ) -> Dict:
        """
        Find the configuration with the fewest mean rounds.

        Ties are broken by higher efficiency.

        Args:
            discipline: Restrict the search to one discipline
            loss_probability: Restrict the search to one loss probability

        Returns:
            Dictionary with optimal configuration info
        """
        aggregated = self.get_aggregated_results()
        if discipline:
            aggregated = {k: v for k, v in aggregated.items() if k[0] == discipline}
        if loss_probability is not None:
            aggregated = {k: v for k, v in aggregated.items() if k[2] == loss_probability}

        if not aggregated:
            return {'error': 'No results available'}

        best_key = min(aggregated.keys(),
                       key=lambda k: (aggregated[k]['rounds_mean'],
                                      -aggregated[k]['efficiency_mean']))
        best = aggregated[best_key]

        return {
            'discipline': best_key[0],
            'window_size': best_key[1],
            'loss_probability': best_key[2],
            'mean_rounds': best['rounds_mean'],
            'mean_efficiency': best['efficiency_mean'],
            'mean_retransmissions': best['retx_mean']
        }
