"""Compiled evaluation of expression trees."""

from .flat import FlatExpression, flatten

__all__ = ['FlatExpression', 'flatten']
