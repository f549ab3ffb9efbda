"""Entry point: load config, run the open-top boundary condition, plot results."""

import logging
import sys

from abltop.config import load_config
from abltop.driver import TopBCRunner
from abltop.plotting import plot_results


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    config_path = sys.argv[1] if len(sys.argv) > 1 else "config/abltop_periodic.yaml"
    print(f"Loading config from {config_path}")

    cfg = load_config(config_path)
    runner = TopBCRunner(cfg)
    output_file = runner.run()

    print("\nGenerating plots...")
    plot_results(output_file, cfg.output.output_dir)
    print("Done.")


if __name__ == "__main__":
    main()
