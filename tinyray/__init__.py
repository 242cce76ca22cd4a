"""Whitted-style ray tracer for a small sphere scene."""
