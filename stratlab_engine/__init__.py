"""
Strategy Lab Engine - parameter search and out-of-sample evaluation for
rule-based long-only trading strategies.
"""
__version__ = "0.1.0"
