"""Professor Quality MCP Server.

Look up professors on RateMyProfessors by name: a time- and popularity-weighted
quality score plus the raw review comments behind it.
"""

__version__ = "0.1.0"
