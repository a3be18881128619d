"""
Tests for metrics, the simulator, batch sweeps, plots and the CLI.
"""

import math
import pytest
import sys
import os

import matplotlib
matplotlib.use("Agg")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.arq.engine import ARQConfig, ARQEngine
from src.arq.window import Discipline
from src.channel.loss_model import ScriptedLossModel, TransmissionOutcome
from src.exceptions import ConfigurationError
from src.utils.metrics import MetricsCollector
from src.utils.logger import SimulationLogger, ConsoleEventSink, LogLevel
from simulation.simulator import Simulator, SimulatorConfig, compare_disciplines
from simulation.runner import BatchRunner
from simulation.parameter_sweep import ParameterSweep
from visualization.heatmap import EfficiencyHeatmap
from visualization.comparison_plot import DisciplineComparisonPlot
import main as cli

LOST = TransmissionOutcome.LOST
DELIVERED = TransmissionOutcome.DELIVERED


def run_scripted(discipline, script, total_frames=5, window_size=3):
    metrics = MetricsCollector(total_frames=total_frames)
    engine = ARQEngine(
        ARQConfig(total_frames=total_frames, window_size=window_size,
                  discipline=discipline),
        loss_model=ScriptedLossModel(script),
        sinks=[metrics]
    )
    engine.run_to_completion()
    return metrics.get_summary()


class TestMetricsCollector:
    """Tests for the metrics sink."""

    def test_selective_repeat_forced_loss(self):
        """One loss costs one retransmission and nothing is discarded."""
        summary = run_scripted(Discipline.SELECTIVE_REPEAT, [LOST, DELIVERED, DELIVERED])

        assert summary['rounds'] == 3
        assert summary['transmissions'] == 6
        assert summary['retransmissions'] == 1
        assert summary['frames_discarded'] == 0
        assert summary['timeouts'] == 1
        assert summary['efficiency'] == pytest.approx(5 / 6)
        assert summary['completed']

    def test_go_back_n_forced_loss(self):
        """Go-Back-N throws away the deliveries behind the gap."""
        summary = run_scripted(Discipline.GO_BACK_N, [LOST, DELIVERED, DELIVERED])

        assert summary['rounds'] == 3
        assert summary['transmissions'] == 8
        assert summary['retransmissions'] == 3
        assert summary['frames_discarded'] == 2
        assert summary['timeouts'] == 3
        assert summary['efficiency'] == pytest.approx(5 / 8)

    def test_empty_collector(self):
        """Nothing recorded gives zero efficiency."""
        metrics = MetricsCollector()

        summary = metrics.get_summary()

        assert summary['efficiency'] == 0.0
        assert summary['avg_window_advance'] == 0

    def test_reset(self):
        """Reset clears counters."""
        metrics = MetricsCollector()
        engine = ARQEngine(ARQConfig(total_frames=4, window_size=2), sinks=[metrics])
        engine.run_to_completion()

        metrics.reset()

        assert metrics.transmissions == 0
        assert metrics.samples == []


class TestSimulator:
    """Tests for the Simulator wrapper."""

    def test_lossless_run(self):
        """Classic demo parameters with no loss."""
        config = SimulatorConfig(total_frames=5, window_size=3, loss_probability=0.0)

        results = Simulator(config).run()

        assert results['complete']
        assert results['rounds'] == 2
        assert results['final_base'] == 5
        assert results['metrics']['efficiency'] == 1.0

    def test_invalid_config_fails_at_construction(self):
        """Bad parameters surface before any round runs."""
        with pytest.raises(ConfigurationError):
            Simulator(SimulatorConfig(window_size=0))
        with pytest.raises(ConfigurationError):
            Simulator(SimulatorConfig(discipline="stop_and_wait"))

    def test_round_cap(self):
        """Total loss with a cap reports ABORTED."""
        config = SimulatorConfig(loss_probability=1.0, max_rounds=25)

        results = Simulator(config).run()

        assert not results['complete']
        assert results['state'] == 'ABORTED'
        assert results['rounds'] == 25
        assert results['final_base'] == 0

    def test_seeded_runs_repeat(self):
        """Same seed gives the same run."""
        config = SimulatorConfig(total_frames=40, window_size=4,
                                 loss_probability=0.3, seed=11)

        first = Simulator(config).run()
        second = Simulator(config).run()

        assert first['rounds'] == second['rounds']
        assert first['metrics']['transmissions'] == second['metrics']['transmissions']

    def test_burst_loss_run(self):
        """Gilbert-Elliott channel converges too."""
        config = SimulatorConfig(total_frames=30, window_size=4, burst_loss=True,
                                 max_rounds=10000, seed=5)

        results = Simulator(config).run()

        assert results['complete']
        assert 'state_transitions' in results['channel']

    def test_reset(self):
        """Reset rebuilds the engine."""
        sim = Simulator(SimulatorConfig(loss_probability=0.0, record_events=True))
        sim.run()

        sim.reset(seed=3)
        results = sim.run()

        assert results['rounds'] == 2
        assert results['config']['seed'] == 3

    def test_reset_replays_same_channel(self):
        """Reset without a seed repeats the run and clears channel statistics."""
        sim = Simulator(SimulatorConfig(total_frames=30, window_size=4,
                                        loss_probability=0.3, seed=9))
        first = sim.run()

        sim.reset()
        second = sim.run()

        assert second['metrics']['transmissions'] == first['metrics']['transmissions']
        assert second['channel']['attempts'] == first['channel']['attempts']

    def test_reset_keeps_supplied_loss_model(self):
        """A caller-supplied model survives reset with fresh counters."""
        model = ScriptedLossModel([LOST])
        sim = Simulator(SimulatorConfig(loss_probability=0.0), loss_model=model)
        sim.run()

        sim.reset()

        assert sim.loss_model is model
        assert model.attempts == 0

    def test_compare_disciplines(self):
        """Both disciplines need ceil(N/W) rounds on a perfect channel."""
        results = compare_disciplines(SimulatorConfig(loss_probability=0.0))

        assert set(results) == {'go_back_n', 'selective_repeat'}
        assert results['go_back_n']['rounds'] == 2
        assert results['selective_repeat']['rounds'] == 2

    def test_selective_repeat_never_worse_on_shared_channel(self):
        """On identical outcome sequences SR transmits no more than GBN."""
        script = [LOST, DELIVERED, DELIVERED, DELIVERED, LOST, DELIVERED]
        gbn = run_scripted(Discipline.GO_BACK_N, script, total_frames=10, window_size=4)
        sr = run_scripted(Discipline.SELECTIVE_REPEAT, script, total_frames=10, window_size=4)

        assert sr['transmissions'] <= gbn['transmissions']
        assert sr['frames_discarded'] == 0


@pytest.fixture
def small_sweep(tmp_path):
    runner = BatchRunner(
        disciplines=['go_back_n', 'selective_repeat'],
        window_sizes=[2, 4],
        loss_probabilities=[0.0, 0.2],
        runs_per_config=2,
        total_frames=20,
        output_file=str(tmp_path / "results.csv"),
        show_progress=False
    )
    runner.run_sequential()
    return runner


class TestBatchRunner:
    """Tests for the sweep runner."""

    def test_row_count(self, small_sweep):
        """Every (discipline, W, p, run) produces a row."""
        assert small_sweep.total_runs == 16
        assert len(small_sweep.results) == 16
        assert all(r['error'] is None for r in small_sweep.results)

    def test_lossless_rows(self, small_sweep):
        """p = 0 rows need exactly ceil(N/W) rounds."""
        for row in small_sweep.results:
            if row['loss_probability'] == 0.0:
                assert row['rounds'] == math.ceil(20 / row['window_size'])
                assert row['efficiency'] == 1.0

    def test_progress_callback(self, tmp_path):
        """Callback sees every completed run."""
        seen = []
        runner = BatchRunner(
            disciplines=['selective_repeat'], window_sizes=[4],
            loss_probabilities=[0.1], runs_per_config=3, total_frames=10,
            output_file=str(tmp_path / "r.csv"), show_progress=False,
            on_progress=lambda done, total, row: seen.append((done, total))
        )

        runner.run_sequential()

        assert seen == [(1, 3), (2, 3), (3, 3)]

    def test_save_and_load(self, small_sweep):
        """Saved CSV loads back into a DataFrame."""
        path = small_sweep.save_results()

        df = ParameterSweep.load_results(path)

        assert len(df) == 16
        assert set(df['discipline']) == {'go_back_n', 'selective_repeat'}

    def test_aggregation_and_optimum(self, small_sweep):
        """Larger windows win on a perfect channel."""
        aggregated = small_sweep.get_aggregated_results()

        assert len(aggregated) == 8
        best = small_sweep.get_optimal_configuration(
            discipline='go_back_n', loss_probability=0.0)
        assert best['window_size'] == 4
        assert best['mean_rounds'] == 5

    def test_optimum_without_results(self):
        """No results gives an error entry."""
        runner = BatchRunner(show_progress=False)

        assert 'error' in runner.get_optimal_configuration()


class TestParameterSweep:
    """Tests for the analytic helpers."""

    def test_default_grid(self):
        """Default grid: 2 disciplines x 6 windows x 6 losses x 10 runs."""
        sweep = ParameterSweep()

        assert sweep.total_configurations == 72
        assert sweep.total_simulations == 720

    def test_theoretical_efficiency(self):
        """Known analytic values."""
        assert ParameterSweep.theoretical_efficiency('selective_repeat', 8, 0.2) == pytest.approx(0.8)
        assert ParameterSweep.theoretical_efficiency('go_back_n', 4, 0.2) == pytest.approx(0.5)
        assert ParameterSweep.theoretical_efficiency('go_back_n', 1, 0.2) == pytest.approx(0.8)
        assert ParameterSweep.theoretical_efficiency('go_back_n', 4, 1.0) == 0.0

    def test_metric_matrix(self, small_sweep):
        """Matrix is indexed by window and loss."""
        matrix = ParameterSweep.create_metric_matrix(
            small_sweep.results, 'selective_repeat', 'rounds')

        assert list(matrix.index) == [2, 4]
        assert list(matrix.columns) == [0.0, 0.2]
        assert matrix.loc[4, 0.0] == 5

    def test_compare_disciplines_ratio(self, small_sweep):
        """Lossless cells have a ratio of exactly one."""
        ratio = ParameterSweep.compare_disciplines(small_sweep.results, 'rounds')

        assert ratio.loc[2, 0.0] == 1.0


class TestVisualization:
    """Smoke tests for the plots."""

    def test_heatmap(self, small_sweep, tmp_path):
        """Heatmap finds the optimum and writes a file."""
        heatmap = EfficiencyHeatmap(results=small_sweep.results)

        w, p, value = heatmap.find_optimal('go_back_n', 'rounds')
        out = heatmap.plot(output_file=str(tmp_path / "heat.png"), metric='rounds')

        assert (w, p, value) == (4, 0.0, 5.0)
        assert os.path.exists(out)

    def test_comparison_plot(self, small_sweep, tmp_path):
        """Comparison plot writes a file."""
        plot = DisciplineComparisonPlot(results=small_sweep.results)

        out = plot.plot(output_file=str(tmp_path / "cmp.png"), metric='efficiency')

        assert os.path.exists(out)

    def test_failed_runs_excluded(self):
        """Error rows do not drag down the cell averages."""
        rows = [
            {'discipline': 'go_back_n', 'window_size': 2, 'loss_probability': 0.0,
             'efficiency': 1.0, 'rounds': 3, 'error': None},
            {'discipline': 'go_back_n', 'window_size': 2, 'loss_probability': 0.0,
             'efficiency': 0, 'complete': False, 'error': 'boom'},
        ]

        heatmap = EfficiencyHeatmap(results=rows)
        summary = DisciplineComparisonPlot(results=rows).summarize('efficiency')

        assert heatmap.create_matrix('go_back_n').loc[2, 0.0] == 1.0
        assert heatmap.find_optimal('go_back_n') == (2, 0.0, 1.0)
        assert summary['mean'].tolist() == [1.0]

    def test_empty_results(self):
        """Plotting nothing is an error."""
        with pytest.raises(ValueError):
            EfficiencyHeatmap().plot()


class TestConsoleOutput:
    """Tests for the console reporter and the CLI."""

    def test_trace_lines(self, capsys):
        """Trace shows the window and the acknowledgments."""
        logger = SimulationLogger(name="GBN", level=LogLevel.INFO, use_colors=False)
        engine = ARQEngine(ARQConfig(total_frames=3, window_size=3),
                           sinks=[ConsoleEventSink(logger)])

        engine.run_to_completion()

        out = capsys.readouterr().out
        assert "Current window: [0, 2]" in out
        assert "Sending frame 0" in out
        assert "Acknowledging frame 0" in out
        assert "All frames transmitted successfully in 1 rounds" in out

    def test_trace_timeout(self, capsys):
        """Timeouts are reported with the frame to resend."""
        logger = SimulationLogger(name="SR", level=LogLevel.INFO, use_colors=False)
        engine = ARQEngine(
            ARQConfig(total_frames=2, window_size=2, discipline='sr'),
            loss_model=ScriptedLossModel([LOST]),
            sinks=[ConsoleEventSink(logger)]
        )

        engine.run_to_completion()

        out = capsys.readouterr().out
        assert "Timeout: resend frame 0" in out
        assert "Sending frame 0 (retx #1)" in out

    def test_cli_single(self, capsys):
        """Single run prints a completed transfer."""
        cli.main(['--single', '--loss', '0'])

        assert "Complete: True" in capsys.readouterr().out

    def test_cli_rejects_bad_window(self):
        """Invalid window exits with a usage error."""
        with pytest.raises(SystemExit):
            cli.main(['--single', '--window', '0'])

    def test_cli_compare(self, capsys):
        """Compare mode runs both disciplines."""
        cli.main(['--compare', '--loss', '0', '--frames', '6', '--window', '3'])

        out = capsys.readouterr().out
        assert "GO-BACK-N SIMULATION" in out
        assert "SELECTIVE REPEAT SIMULATION" in out
        assert "COMPARISON" in out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
