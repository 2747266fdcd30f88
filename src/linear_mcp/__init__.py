"""
Linear MCP - Linear workspace as addressable resources

Every team, cycle, issue, project, user and comment has a linear:// URI.
- ResourceRouter maps URIs to read and list operations
- Paginator walks Linear's cursor-paginated connections
"""

from .server import main

__all__ = ["main"]
