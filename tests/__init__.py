"""
Tests Package.

This package contains test suites for the algedonode hierarchy, including unit
tests for the wiring and activation protocol and whole-hierarchy tests over the
full dial state space. The tests check the topology contracts, the gating of
escape lines and the single-light invariant.
"""

# Tests Package
