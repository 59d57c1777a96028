"""Inference backends invoked once per turn."""
