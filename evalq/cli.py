import argparse
import asyncio
import sys
from pathlib import Path

from evalq.config.settings import settings


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser("evalq")
    sub = parser.add_subparsers(dest="cmd")

    p_worker = sub.add_parser("worker", help="Inicia el bucle de evaluación")
    p_worker.add_argument("--poll-seconds", type=float, default=None)

    sub.add_parser("once", help="Ejecuta una sola pasada sobre los Pending")

    p_enq = sub.add_parser("enqueue", help="Encola una entrega (Pending)")
    p_enq.add_argument("name")
    p_enq.add_argument("file", type=Path)
    p_enq.add_argument("--timestamp", default=None, help="DD-MM-YYYY HH:MM")

    p_list = sub.add_parser("list", help="Lista jobs recientes")
    p_list.add_argument("--status", choices=["Pending", "Success", "Failure"], default=None)
    p_list.add_argument("--limit", type=int, default=20)

    sub.add_parser("panel", help="Inicia el Panel FastAPI")

    args = parser.parse_args(argv)

    if args.cmd in ("worker", "once", "enqueue", "list"):
        from evalq.core.db import SQLiteJobStore
        from evalq.core.errors import StoreError
        from evalq.core.runner import run_cycle, run_forever

        try:
            store = SQLiteJobStore(settings.DB_PATH)
        except StoreError as e:
            print(f"[!] No se pudo abrir la base de datos: {e}")
            return 1

        if args.cmd == "worker":
            try:
                asyncio.run(run_forever(store, poll_interval=args.poll_seconds))
            except KeyboardInterrupt:
                print("\n[i] Worker detenido por el usuario.")
            return 0

        if args.cmd == "once":
            n = asyncio.run(run_cycle(store))
            print(f"resolved={n}")
            return 0

        if args.cmd == "enqueue":
            try:
                payload = args.file.read_text(encoding="utf-8")
            except OSError as e:
                print(f"[!] No se pudo leer {args.file}: {e}")
                return 1
            print(store.add(args.name, payload, args.timestamp))
            return 0

        for job in store.list_jobs(limit=args.limit, status=args.status):
            print(f"{job.id}\t{job.timestamp}\t{job.status.value}\t{job.score:g}\t{job.name}")
        return 0

    elif args.cmd == "panel":
        try:
            import uvicorn

            uvicorn.run(
                "evalq.panel.api:app",
                host=settings.PANEL_HOST,
                port=settings.PANEL_PORT,
                reload=False,
            )
            return 0
        except KeyboardInterrupt:
            print("\n[i] Panel detenido por el usuario.")
            return 0

    else:
        parser.print_help()
        # código 2 suele indicar 'uso incorrecto de CLI'
        return 2


if __name__ == "__main__":
    sys.exit(main())
