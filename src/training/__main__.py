"""Main entry point for training a network from the console."""
import argparse
import signal
import sys

from network.neural_net import NeuralNet
from network.rng import seed
from .budget import CancellationToken, TrainingBudget
from .config_loader import ALGORITHMS, load_config, validate_config
from .objectives import validate_examples
from .reporting import ConsoleReporter
from .trainer import hill_climb_training, train_error_distribution


def inspect_network(network: NeuralNet, rng) -> None:
    """Print a network's topology and its prediction for one random integer input."""
    summary = network.describe()
    print("/" * 60)
    print(f"Input size: {summary['input_size']}")
    print(f"Number of layers: {summary['num_layers']}")
    print(f"Output size: {summary['output_size']}")
    print(f"Shape: {summary['shape']}")
    for i, layer in enumerate(summary["layers"]):
        activation = "relu" if layer["use_activation"] else "linear"
        print(f"  Layer {i}: weights {layer['weights_shape'][0]}x{layer['weights_shape'][1]} ({activation})")

    input_data = rng.integers(-5, 5, network.input_size).astype(float)
    output = network.predict(input_data)
    print(f"Input: {input_data.tolist()}")
    print(f"Output: {output.tolist()}")
    print("/" * 60)


def build_parser(config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Train a small feed-forward network by error distribution or hill-climbing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Values can also be configured via training_config.json file. "
               "Command-line arguments override config file values."
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: training_config.json in project root)"
    )
    parser.add_argument(
        "--algorithm",
        choices=ALGORITHMS,
        default=None,
        help=f"Training algorithm (default from config: {config['algorithm']})"
    )
    parser.add_argument(
        "--shape",
        type=int,
        nargs="+",
        default=None,
        help=f"Layer sizes from input to output (default from config: {config['shape']})"
    )
    parser.add_argument(
        "--weight-range",
        type=float,
        nargs=2,
        default=None,
        metavar=("LOW", "HIGH"),
        help=f"Bounds for initial weights (default from config: {config['weight_range']})"
    )
    parser.add_argument(
        "--learning-rate",
        type=float,
        default=None,
        help=f"Nudge multiplier for error distribution (default from config: {config['learning_rate']})"
    )
    parser.add_argument(
        "--loss-target",
        type=float,
        default=None,
        help=f"Stop once the mean squared error falls below this (default from config: {config['loss_target']})"
    )
    parser.add_argument(
        "--max-change-amount",
        type=float,
        default=None,
        help=f"Largest per-weight perturbation for hill-climbing (default from config: {config['max_change_amount']})"
    )
    parser.add_argument(
        "--change-chance",
        type=float,
        default=None,
        help=f"Probability that a weight is perturbed in each hill-climbing candidate (default from config: {config['change_chance']})"
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help=f"Iteration budget (default from config: {config['max_iterations']})"
    )
    parser.add_argument(
        "--max-seconds",
        type=float,
        default=None,
        help=f"Wall-clock budget in seconds (default from config: {config['max_seconds'] or 'unlimited'})"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help=f"Random seed (default from config: {config['seed'] if config['seed'] is not None else 'random'})"
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=None,
        help=f"Print the loss every N iterations (default from config: {config['report_every']})"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the final summary"
    )
    parser.add_argument(
        "--inspect",
        action="store_true",
        help="Print the topology of a freshly built network and one sample prediction before training"
    )
    return parser


def main(argv=None) -> int:
    """Build a network from the configuration and train it until converged or out of budget."""
    # Load configuration from file first
    config = load_config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    # Reload config if a custom config file was specified
    if args.config:
        config = load_config(args.config)

    # Use command-line arguments if provided, otherwise use config file values
    for key in ("algorithm", "shape", "weight_range", "learning_rate", "loss_target",
                "max_change_amount", "change_chance", "max_iterations", "max_seconds", "seed", "report_every"):
        value = getattr(args, key)
        if value is not None:
            config[key] = value
    quiet = args.quiet or bool(config["quiet"])

    if config["algorithm"] not in ALGORITHMS:
        print(f"Error: unknown algorithm {config['algorithm']!r}, expected one of {list(ALGORITHMS)}")
        return 2

    try:
        validate_config(config)
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    rng = seed(config["seed"])

    try:
        network = NeuralNet.random_network(config["shape"], config["weight_range"], rng=rng)
        examples, targets = validate_examples(network, config["examples"], config["targets"])
        reporter = ConsoleReporter(every=config["report_every"], quiet=quiet)
        token = CancellationToken()
        budget = TrainingBudget(max_iterations=config["max_iterations"],
                                max_seconds=config["max_seconds"], cancel_token=token)
    except (TypeError, ValueError) as e:
        print(f"Error: {e}")
        return 2

    if args.inspect:
        inspect_network(network, rng)

    print("=" * 60)
    print("Network Training")
    print("=" * 60)
    print()
    print("Configuration:")
    print(f"  Algorithm: {config['algorithm']}")
    print(f"  Shape: {network.shape}")
    print(f"  Weight range: {config['weight_range']}")
    if config["algorithm"] == "error_distribution":
        print(f"  Learning rate: {config['learning_rate']}")
    else:
        print(f"  Max change amount: {config['max_change_amount']}")
        print(f"  Change chance: {config['change_chance']}")
    print(f"  Loss target: {config['loss_target']}")
    print(f"  Max iterations: {config['max_iterations'] if config['max_iterations'] is not None else 'unlimited'}")
    print(f"  Max seconds: {config['max_seconds'] if config['max_seconds'] is not None else 'unlimited'}")
    print(f"  Examples: {len(examples)}")
    print()

    # Ctrl+C stops training at the next iteration instead of killing the process
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        if config["algorithm"] == "error_distribution":
            result = train_error_distribution(network, examples, targets,
                                              learning_rate=config["learning_rate"],
                                              loss_target=config["loss_target"],
                                              budget=budget, reporter=reporter)
        else:
            result = hill_climb_training(network, examples, targets,
                                         loss_target=config["loss_target"],
                                         max_change_amount=config["max_change_amount"],
                                         budget=budget, reporter=reporter, rng=rng,
                                         change_chance=config["change_chance"])
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print()
    print("=" * 60)
    print("Training Results")
    print("=" * 60)
    print(f"Status: {result.status.value}")
    print(f"Iterations: {result.iterations}")
    print(f"Loss: {result.loss}")
    print(f"Elapsed: {budget.elapsed():.2f}s")
    print()
    print("Predictions:")
    for features, labels in zip(examples, targets):
        prediction = result.network.predict(features)
        print(f"  {features.tolist()} -> {prediction.tolist()} (target {labels.tolist()})")

    return 0


if __name__ == "__main__":
    sys.exit(main())
