"""Catalog app package.

Holds what can be sold: room types (cabins) with their weekday and weekend
nightly rates, priced extras, and packages bundling a stay with extras.
The booking engine reads these rows; it never mutates them.
"""
