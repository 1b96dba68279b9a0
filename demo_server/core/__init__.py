"""
demo_server/core
================

The **core** sub-package contains the server runtime:

- ``server.py``: Application root: config, logging, toolkit and the
  ``mcp.run`` loop.
- ``prompt_loader.py``: Reads the NL→SQL prompt template from ``prompts.md``
  so the prompt can be updated without touching code.
"""
