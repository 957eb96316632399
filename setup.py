"""
setup.py for the qpsens package.

qpsens differentiates the solution of convex optimization problems with
respect to their input parameters. Solving and the derivative of the
cone program are delegated to cvxpy and diffcp (SCS backend).

Install for development:
    pip install -e ".[dev]"

PyTorch integration (optional):
    pip install -e ".[torch]"
"""

from setuptools import find_packages, setup

setup(
    name="qpsens",
    version="0.1.0",
    description="Forward and reverse sensitivity analysis through QP solution maps",
    package_dir={"": "python"},
    packages=find_packages(where="python"),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "scipy>=1.7",
        "cvxpy>=1.3",
        "diffcp>=1.0",
        "scs>=3.0",
    ],
    extras_require={
        "torch": [
            "torch>=2.0",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "hypothesis>=6.0",
            "black>=23.0",
            "ruff>=0.1.0",
            "mypy>=1.0",
            "torch>=2.0",
        ],
    },
)
