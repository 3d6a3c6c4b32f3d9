"""Run the Space API server.

Equivalent to `python -m api`.
"""
import asyncio

from api.__main__ import main

if __name__ == "__main__":
    asyncio.run(main())
