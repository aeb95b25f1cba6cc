#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Server Runner
Запуск HTTP-сервиса: python -m solo_hunter.server
"""

import argparse

import uvicorn

from solo_hunter.server.config import get_settings


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Solo Hunter API server")
    parser.add_argument("--host", default=settings.HOST, help="Хост для запуска")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Порт для запуска")
    parser.add_argument("--reload", action="store_true", help="Перезапуск при изменении кода")
    args = parser.parse_args()

    uvicorn.run(
        "solo_hunter.server.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
