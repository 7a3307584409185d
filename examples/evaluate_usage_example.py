"""
Simple usage example for the pollution-index engine.

Builds a small wide frame of groundwater samples, evaluates it and prints
the per-sample table and the batch summary.
"""

import logging
import sys

import pandas as pd

# Add the src directory to path
sys.path.append('../src')
from hmpi import EngineConfig, build_standards_table, evaluate_all
from hmpi.frame import samples_from_frame, outcomes_to_frame, summarize_outcomes


def simple_usage_example():
    """Evaluate three samples, one of which carries a bad reading."""

    print("=== Heavy Metal Pollution Indices - Usage Example ===\n")

    df = pd.DataFrame({
        "Sample ID": ["GW-001", "GW-002", "GW-003"],
        "Latitude": [28.61, 28.70, 28.55],
        "Longitude": [77.21, 77.10, 77.30],
        "Depth": [45.0, 60.0, 30.0],
        "Lead": [0.15, 0.004, 0.02],
        "Cadmium": [0.008, -0.001, 0.001],
        "Chromium": [0.03, 0.01, 0.02],
        "Iron": [0.8, 0.1, 0.25],
    })

    # Stricter local lead limit on top of the WHO defaults
    config = EngineConfig(standards=build_standards_table(overrides={"lead": 0.008}))

    samples = samples_from_frame(df)
    outcomes = evaluate_all(samples, config, max_workers=4)

    print("1. Per-sample results")
    print(outcomes_to_frame(outcomes).to_string(index=False))

    print("\n2. Batch summary")
    print(summarize_outcomes(outcomes).to_string())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    simple_usage_example()
