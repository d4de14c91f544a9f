"""Bulk price import pipeline for matprice.

Sequential, partial-failure tolerant reconciliation of supplier price
lists against the material catalog.
"""
