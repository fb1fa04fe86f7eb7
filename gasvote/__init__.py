"""py-gasvote: gas accounting and stack-safety checks for an EVM-style interpreter."""

__version__ = "0.1.0"
