"""PuzzleTutor JSON-lines server entry point.

Usage: python -m puzzletutor.server

Reads JSON requests from stdin (one per line), writes JSON responses and
notifications to stdout. Logging goes to stderr to keep the protocol clean.
"""

from __future__ import annotations

import asyncio
import json
import sys

from loguru import logger

from puzzletutor.config.settings import Settings, configure_logging

from .handler import ServerHandler
from .protocol import Notification, Request, Response


async def main() -> None:
    loop = asyncio.get_event_loop()
    settings = Settings.load()
    configure_logging(settings.get_log_level())

    def write_line(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def write_notification(notification: Notification) -> None:
        write_line(notification.to_json_line())

    handler = ServerHandler(settings=settings, write_notification=write_notification)
    logger.info("puzzletutor-server: ready")

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    try:
        while True:
            line = await reader.readline()
            if not line:
                break  # stdin closed

            line_str = line.decode("utf-8", errors="replace").strip()
            if not line_str:
                continue

            try:
                request = Request.from_dict(json.loads(line_str))
            except ValueError as e:  # JSONDecodeError included
                write_line(Response(id=0, error=f"Invalid request: {e}").to_json_line())
                continue

            try:
                result = await handler.dispatch(
                    {"method": request.method, "params": request.params}
                )
                resp = Response(id=request.id, result=result)
            except Exception as e:
                logger.error("puzzletutor-server: {} failed: {}", request.method, e)
                resp = Response(id=request.id, error=str(e))

            write_line(resp.to_json_line())
    finally:
        handler.close()


if __name__ == "__main__":
    asyncio.run(main())
