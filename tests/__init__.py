"""
Test Suite for DeepGL.

This package contains tests for all modules:
- test_data.py: Graph views and loaders
- test_features.py: Feature lineage and base features
- test_operators.py: Relational operators
- test_aggregation.py: Aggregation, diffusion, binning and pruning
- test_engine.py: State machine, termination, parallelism and cancellation
- test_inference.py: Encoder, cache and metrics
- test_integration.py: End-to-end integration tests
"""
