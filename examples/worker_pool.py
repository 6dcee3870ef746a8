"""
worker_pool.py — Distribute jobs from one producer to several worker
processes through a single FIFO.

    python examples/worker_pool.py [num_workers]

Every job is handled by exactly one worker.  Each worker stops when it
receives an empty message; the producer sends one per worker.
"""

import os
import sys
import tempfile
import multiprocessing as mp


def worker(path: str, results):
    from pipe_queue import open_reader

    with open_reader(path, poll_interval=0.0005) as reader:
        handled = []
        while True:
            job = reader.receive()
            if not job:
                break
            n = int(job)
            handled.append((n, n * n))
        results.put((os.getpid(), handled))


def main():
    from pipe_queue import create, remove_pipe

    num_workers = int(sys.argv[1]) if len(sys.argv) > 1 else 3
    path = os.path.join(tempfile.gettempdir(), f"pipe_queue_pool_{os.getpid()}.fifo")

    ctx = mp.get_context("spawn")
    results = ctx.Queue()

    try:
        with create(path) as queue:
            procs = [
                ctx.Process(target=worker, args=(path, results))
                for _ in range(num_workers)
            ]
            for p in procs:
                p.start()

            for n in range(100):
                queue.send(str(n).encode())
            for _ in procs:
                queue.send(b"")

            total = 0
            for _ in procs:
                pid, handled = results.get(timeout=30.0)
                total += len(handled)
                print(f"  worker {pid}: {len(handled)} jobs")
            for p in procs:
                p.join()
            print(f"{total} jobs handled by {num_workers} workers")
    finally:
        remove_pipe(path)


if __name__ == "__main__":
    main()
