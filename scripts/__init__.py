"""Command line scripts for DeepGL."""
