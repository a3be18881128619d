"""
Configuration file for the Sliding-Window ARQ Simulator.
Contains the baseline parameters for Go-Back-N and Selective-Repeat runs.
"""

import math
import os

# =============================================================================
# DEMO RUN PARAMETERS
# =============================================================================

# Classic textbook demo: 5 frames through a window of 3 over a 30% lossy link
DEFAULT_TOTAL_FRAMES = 5
DEFAULT_WINDOW_SIZE = 3
DEFAULT_LOSS_PROBABILITY = 0.3

# "go_back_n" or "selective_repeat"
DEFAULT_DISCIPLINE = "go_back_n"

# Safety cap on rounds (None = run until every frame is acknowledged)
DEFAULT_MAX_ROUNDS = None

# =============================================================================
# GILBERT-ELLIOTT BURST LOSS MODEL PARAMETERS (frame granularity)
# =============================================================================

# Frame loss probability in each state
GOOD_STATE_LOSS = 0.01
BAD_STATE_LOSS = 0.6

# State transition probabilities (per transmission attempt)
P_GOOD_TO_BAD = 0.05
P_BAD_TO_GOOD = 0.3

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

# Window sizes to evaluate
WINDOW_SIZES = [1, 2, 4, 8, 16, 32]

# Frame loss probabilities to evaluate
LOSS_PROBABILITIES = [0.0, 0.05, 0.1, 0.2, 0.3, 0.5]

# Both retransmission disciplines
DISCIPLINES = ["go_back_n", "selective_repeat"]

# Frames transferred per sweep run
SWEEP_TOTAL_FRAMES = 200

# Number of simulation runs per (discipline, W, p) triple
RUNS_PER_CONFIGURATION = 10

# Rounds cap for sweep runs so a pathological point cannot stall the batch
SWEEP_MAX_ROUNDS = 100_000

# Total simulations = 2 × 6 × 6 × 10 = 720

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Default RNG seed base (actual seed = base + offsets per run)
RNG_SEED_BASE = 42

# Logging verbosity levels
LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_INFO

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

# Results CSV filename
RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS (calculated from fixed parameters)
# =============================================================================

def minimum_rounds(total_frames, window_size):
    """Rounds needed on a lossless channel: ceil(N / W)."""
    return math.ceil(total_frames / window_size)

def expected_transmissions_per_frame(loss_probability):
    """
    Expected transmissions of one frame under independent loss
    (Selective-Repeat bound).
    E[T] = 1 / (1 - p)
    """
    if loss_probability >= 1.0:
        return float('inf')
    return 1.0 / (1.0 - loss_probability)

def calculate_steady_state_probabilities():
    """
    Calculate steady-state probabilities for Good and Bad states.
    π_G = P(B→G) / (P(G→B) + P(B→G))
    π_B = P(G→B) / (P(G→B) + P(B→G))
    """
    sum_transitions = P_GOOD_TO_BAD + P_BAD_TO_GOOD
    pi_good = P_BAD_TO_GOOD / sum_transitions
    pi_bad = P_GOOD_TO_BAD / sum_transitions
    return pi_good, pi_bad

def calculate_average_loss():
    """
    Calculate average frame loss rate based on steady-state probabilities.
    loss_avg = π_G * l_g + π_B * l_b
    """
    pi_good, pi_bad = calculate_steady_state_probabilities()
    return pi_good * GOOD_STATE_LOSS + pi_bad * BAD_STATE_LOSS


# Print configuration summary
if __name__ == "__main__":
    print("=" * 60)
    print("SLIDING-WINDOW ARQ SIMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nDemo Run:")
    print(f"  Total Frames: {DEFAULT_TOTAL_FRAMES}")
    print(f"  Window Size: {DEFAULT_WINDOW_SIZE}")
    print(f"  Loss Probability: {DEFAULT_LOSS_PROBABILITY}")
    print(f"  Discipline: {DEFAULT_DISCIPLINE}")

    print(f"\nGilbert-Elliott Model:")
    print(f"  Good State Loss: {GOOD_STATE_LOSS}")
    print(f"  Bad State Loss: {BAD_STATE_LOSS}")
    print(f"  P(G->B): {P_GOOD_TO_BAD}")
    print(f"  P(B->G): {P_BAD_TO_GOOD}")

    pi_good, pi_bad = calculate_steady_state_probabilities()
    print(f"  Steady-state P(Good): {pi_good:.4f}")
    print(f"  Steady-state P(Bad): {pi_bad:.4f}")
    print(f"  Average Loss: {calculate_average_loss():.4f}")

    print(f"\nParameter Sweep:")
    print(f"  Disciplines: {DISCIPLINES}")
    print(f"  Window Sizes: {WINDOW_SIZES}")
    print(f"  Loss Probabilities: {LOSS_PROBABILITIES}")
    print(f"  Frames per run: {SWEEP_TOTAL_FRAMES}")
    print(f"  Runs per config: {RUNS_PER_CONFIGURATION}")
    total = len(DISCIPLINES) * len(WINDOW_SIZES) * len(LOSS_PROBABILITIES) * RUNS_PER_CONFIGURATION
    print(f"  Total simulations: {total}")
