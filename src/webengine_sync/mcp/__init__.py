"""MCP stdio host for webengine-sync."""
