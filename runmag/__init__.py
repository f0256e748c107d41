"""Reader for the RM3100 magnetometer and MCP9808 temperature sensors over Linux I2C."""

__version__ = "0.1.3"
__all__ = ["__version__"]