#!/usr/bin/env python3
"""
MCP GitHub Multi 主入口点

    python -m mcp_github_multi
"""

from .server import main

if __name__ == "__main__":
    main()
