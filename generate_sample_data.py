"""
Generate a synthetic recidivism-risk dataset with group disparities.

The columns mirror the public two-year recidivism data commonly used in
fairness audits:
- Race groups with unequal base rates of recorded re-offence
- Prior counts that differ by group and drive the label
- A mix of numeric and categorical features

Usage:
    python generate_sample_data.py
    python generate_sample_data.py --output data/compas_sample.csv --samples 2000
"""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from shared.constants import DEFAULT_PATHS

RACES = ["African-American", "Caucasian", "Hispanic", "Other"]
RACE_PROBS = [0.45, 0.35, 0.12, 0.08]


def generate_recidivism_dataset(n_samples=1000, seed=42, bias_strength=0.3):
    """
    Generate a synthetic two-year recidivism dataset with built-in disparity.

    Args:
        n_samples: Number of defendants to generate
        seed: Random seed for reproducibility
        bias_strength: How strongly group membership shifts priors and
            outcome (0=none, 1=extreme)

    Returns:
        DataFrame with one row per defendant
    """
    rng = np.random.default_rng(seed)

    race = rng.choice(RACES, n_samples, p=RACE_PROBS)
    sex = rng.choice(["Male", "Female"], n_samples, p=[0.8, 0.2])
    age = rng.normal(34, 11, n_samples).clip(18, 70).astype(int)

    # Recorded priors rise with age and, for the disadvantaged group, with bias
    group_shift = np.where(race == "African-American", 1.5 * bias_strength, 0.0)
    priors_count = rng.poisson(1.0 + (age - 18) / 15 + group_shift * 3)
    juv_count = rng.poisson(np.where(age < 25, 0.6, 0.2) + group_shift)
    c_charge_degree = rng.choice(["F", "M"], n_samples, p=[0.65, 0.35])

    score = (
        -1.0
        + 0.25 * priors_count
        + 0.3 * juv_count
        - 0.03 * (age - 18)
        + 0.3 * (c_charge_degree == "F")
        + 0.2 * (sex == "Male")
        + group_shift
        + rng.normal(0, 0.8, n_samples)
    )
    two_year_recid = (1 / (1 + np.exp(-score)) > 0.5).astype(int)

    return pd.DataFrame({
        'age': age,
        'sex': sex,
        'race': race,
        'priors_count': priors_count,
        'juv_count': juv_count,
        'c_charge_degree': c_charge_degree,
        'two_year_recid': two_year_recid,
    })


def print_dataset_summary(df):
    """Print summary statistics about the generated dataset."""
    print("\n" + "=" * 60)
    print("Dataset Summary")
    print("=" * 60)

    print(f"\nShape: {df.shape[0]} rows x {df.shape[1]} columns")

    print("\nRace distribution:")
    for race, count in df['race'].value_counts().items():
        print(f"  - {race}: {count} ({count / len(df) * 100:.1f}%)")

    print("\nTwo-year recidivism rate by race:")
    for race, rate in df.groupby('race')['two_year_recid'].mean().items():
        print(f"  - {race}: {rate:.1%}")

    print(f"\nPriors: mean {df['priors_count'].mean():.2f}, max {df['priors_count'].max()}")


def main():
    parser = argparse.ArgumentParser(description="Generate sample recidivism dataset")
    parser.add_argument(
        '--output',
        type=str,
        default=DEFAULT_PATHS['data'],
        help="Output CSV path"
    )
    parser.add_argument(
        '--samples',
        type=int,
        default=1000,
        help="Number of samples to generate"
    )
    parser.add_argument(
        '--bias',
        type=float,
        default=0.3,
        help="Bias strength (0=none, 1=extreme)"
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help="Random seed for reproducibility"
    )

    args = parser.parse_args()

    df = generate_recidivism_dataset(
        n_samples=args.samples,
        seed=args.seed,
        bias_strength=args.bias,
    )

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    print(f"\nDataset saved to: {output_path}")

    print_dataset_summary(df)

    print("\nRun the audit with:")
    print(f"  python run_pipeline.py --config config.yml --data {output_path}")


if __name__ == "__main__":
    main()
