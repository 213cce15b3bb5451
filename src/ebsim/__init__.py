"""Empirical-Bayes shrinkage simulation study for batting averages."""

__version__ = "0.1.0"
