"""Reaching definitions and live variables over block CFGs of three-address code."""
