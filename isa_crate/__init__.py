"""Mapping between the ISA object model and its JSON, RO-Crate and ISA-Tab forms."""

__version__ = "0.1.0"
