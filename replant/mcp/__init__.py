"""MCP server for replant."""
