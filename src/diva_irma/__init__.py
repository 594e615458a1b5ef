"""IRMA session orchestration for DIVA relying parties."""

__version__ = "0.1.0"
