# File: variantbench/__init__.py
# Location: variantbench/variantbench/__init__.py

"""
variantbench Package.

This package drives a reproducible long-read variant-calling benchmark:
it stages the case-study data, runs a containerized variant caller and
scores the calls against a truth set with a containerized benchmarking tool.
"""

from .version import __version__
