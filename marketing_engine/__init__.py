"""
Marketing Engine: deterministic marketing-maturity assessment engine.

Scores a business's questionnaire answers across five maturity dimensions,
runs a panel of domain experts over the scores, and emits ranked
recommendations and urgency-sorted alerts as one result bundle.
"""

__version__ = "0.1.0"
