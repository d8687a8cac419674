"""
HABTREND package
================

Harmful-algal-bloom trend analysis over a global event table.

- Dataset loading is in `habtrend/loader.py`.
- Year aggregation (counts, toxicity rates) is in `habtrend/aggregate.py`.
- Linear and logistic-growth fitting is in `habtrend/fit.py`.
- Map projection is in `habtrend/geo.py`; figures in `habtrend/render.py`.
- The CLI entry point is in `habtrend/cli.py`.
"""

__version__ = '0.1.0'
