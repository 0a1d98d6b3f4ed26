#!/usr/bin/env python3
"""
DeepGL Encoding Script.

This script computes DeepGL structural embeddings for a graph:
1. Loads config (YAML) and applies command line overrides
2. Loads a graph from JSON or creates a synthetic one
3. Runs the DeepGL engine
4. Writes features and per-node embeddings to JSON

Usage:
    python scripts/encode.py --graph data/raw/graph.json --output embeddings.json
    python scripts/encode.py --mock 500 --iterations 2 --pruning-lambda 0.5
"""

import argparse
import json
import sys
import time
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import load_config, apply_overrides
from deepgl.data import GraphLoader
from deepgl.engine import DeepGL, DeepGLConfig
from deepgl.utils.metrics import compute_embedding_statistics


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Compute DeepGL structural embeddings')

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--graph', type=str, default=None,
        help='Path to graph file (JSON with nodes and edges)'
    )
    source.add_argument(
        '--mock', type=int, default=None, metavar='N',
        help='Embed a synthetic random graph with N nodes'
    )

    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to configuration file (default: config/default.yaml)'
    )
    parser.add_argument(
        '--iterations', type=int, default=None,
        help='Maximum number of layers'
    )
    parser.add_argument(
        '--pruning-lambda', type=float, default=None,
        help='Pruning threshold (higher prunes more)'
    )
    parser.add_argument(
        '--diffusion-iterations', type=int, default=None,
        help='Diffusion rounds per layer'
    )
    parser.add_argument(
        '--concurrency', type=int, default=None,
        help='Number of worker threads'
    )
    parser.add_argument(
        '--seed', type=int, default=42,
        help='Random seed for --mock'
    )
    parser.add_argument(
        '--output', type=str, default=None,
        help='Output JSON file (default: print a summary only)'
    )
    parser.add_argument(
        '--quiet', action='store_true',
        help='Suppress progress output'
    )

    return parser.parse_args(argv)


def build_config(args) -> DeepGLConfig:
    """Merge the YAML config with command line overrides."""
    config = load_config(args.config)
    config = apply_overrides(config, {
        'iterations': args.iterations,
        'pruning_lambda': args.pruning_lambda,
        'diffusion_iterations': args.diffusion_iterations,
        'concurrency': args.concurrency,
        'verbose': False if args.quiet else None,
    })
    return DeepGLConfig.from_dict(config)


def main(argv=None):
    """Main encoding function."""
    args = parse_args(argv)
    config = build_config(args)

    if config.verbose:
        print("=" * 60)
        print("DeepGL Structural Embeddings")
        print("=" * 60)

    if args.graph:
        graph = GraphLoader.from_file(args.graph)
    else:
        graph = GraphLoader.create_mock(num_nodes=args.mock, seed=args.seed)

    start_time = time.time()
    engine = DeepGL(graph, config).compute()
    elapsed = time.time() - start_time

    stats = compute_embedding_statistics(engine.embedding)
    print(f"Nodes: {stats['num_nodes']}, features: {stats['embedding_dim']}, "
          f"layers: {engine.num_layers}, distinct roles: {stats['distinct_rows']} "
          f"({elapsed:.2f}s)")

    if args.output:
        output = {
            'config': config.to_dict(),
            'num_layers': engine.num_layers,
            'features': [str(f) for f in engine.feature_stream()],
            'embeddings': [
                {'node_id': result.node_id, 'embedding': result.embedding}
                for result in engine.result_stream()
            ]
        }
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(output, f, indent=2)
        print(f"Saved embeddings to {output_path}")

    return engine


if __name__ == '__main__':
    main()
