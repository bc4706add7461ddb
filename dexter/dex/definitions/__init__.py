"""Datum layouts and on-chain constants per venue."""
