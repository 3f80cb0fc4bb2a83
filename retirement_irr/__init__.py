"""Required annual return (IRR) for retirement savings plans."""

__version__ = "1.0.0"
