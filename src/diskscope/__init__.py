"""diskscope: storage diagnostic report for Linux hosts."""

__version__ = "0.1.0"
