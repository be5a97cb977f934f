"""Loki MCP server: query Grafana Loki for logs over MCP."""

__version__ = "0.1.0"
