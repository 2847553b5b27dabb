"""inlayhints - inline type, parameter-name and chaining hints for Rust source."""

__version__ = "0.3.2"
