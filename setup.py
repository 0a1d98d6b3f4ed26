"""
Setup script for the DeepGL structural embeddings package.
"""

from setuptools import setup, find_packages

setup(
    name="deepgl-embeddings",
    version="1.0.0",
    description="DeepGL unsupervised structural node embeddings",
    author="DeepGL Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"config": ["*.yaml"]},
    python_requires=">=3.8",
    install_requires=[
        "torch>=2.0.0",
        "torch-geometric>=2.4.0",
        "networkx>=3.0",
        "numpy>=1.23.0",
        "pyyaml>=6.0",
        "scikit-learn>=1.2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "deepgl-encode=scripts.encode:main",
        ],
    },
)
