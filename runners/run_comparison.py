# Model comparison runner
# Loads a YAML config and a CSV dataset, runs the comparison pipeline and saves the run

import argparse
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modeleval.config_schema import validate_config, ConfigValidationError
from modeleval.io import load_config, save_results, create_run_dir, save_data_profile
from modeleval.data import load_dataset, preprocess_data
from modeleval.pipeline import run_comparison, print_report


def run(config_path, dataset_path=None, output_dir=None):
    """
    Run one model comparison.

    Args:
        config_path: Path to YAML config file
        dataset_path: Optional path to dataset CSV (overrides config)
        output_dir: Optional output directory (overrides config)

    Returns:
        run_dir: Path to experiment output directory
    """
    # Load and validate config
    config = load_config(config_path)

    # Override output_dir if provided
    if output_dir:
        config['experiment']['output_dir'] = output_dir

    try:
        validate_config(config)
    except ConfigValidationError as e:
        print(f"\nCONFIG ERROR:\n{e}")
        raise

    target = config['data']['target_column']
    target_type = config['data'].get('target_type', 'regression')

    print("=" * 60)
    print("MODEL COMPARISON")
    print("=" * 60)
    print(f"Experiment: {config['experiment']['name']}")
    print(f"Target: {target} ({target_type})")
    print(f"Seed: {config['experiment']['seed']}")
    print(f"Models: {[m['type'] for m in config['models']]}")
    print("=" * 60)

    # Load data
    df, actual_path = load_dataset(config, dataset_path)
    print(f"\nDataset shape: {df.shape}")

    report = run_comparison(df, config)
    print_report(report)

    # Create run directory
    run_dir = create_run_dir(config)

    # Save data profile (dataset fingerprint)
    X, y = preprocess_data(df, config)
    save_data_profile(run_dir, df, X, y, actual_path)

    # Save results
    save_results(run_dir, config, report)

    print("\n" + "=" * 60)
    print("Model comparison complete!")
    print("=" * 60)

    return run_dir


def main():
    parser = argparse.ArgumentParser(
        description='Compare candidate models against a null baseline '
                    '(holdout, repeated k-fold CV, bootstrap)'
    )
    parser.add_argument('--config', '-c', type=str, default='configs/comparison_regression.yaml',
                        help='Path to config YAML file')
    parser.add_argument('--dataset', '-d', type=str, default=None,
                        help='Path to dataset CSV (overrides config)')
    parser.add_argument('--output-dir', '-o', type=str, default=None,
                        help='Directory for run outputs (overrides config)')
    args = parser.parse_args()

    run(args.config, args.dataset, args.output_dir)


if __name__ == "__main__":
    main()
