"""tcmwalker - terminal explorer for TCM deployment topologies."""

__version__ = "0.1.0"
