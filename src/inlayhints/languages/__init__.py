"""Syntax providers that build :mod:`inlayhints.syntax` trees."""

from .rust import dump_tree, parse_rust

__all__ = [
    "dump_tree",
    "parse_rust",
]
