"""
simple_queue.py — Minimal producer / consumer example.

Run the producer in one terminal:
    python examples/simple_queue.py producer

Run one or more consumers in other terminals:
    python examples/simple_queue.py consumer

Each message goes to exactly one consumer.  The FIFO is removed when the
producer is stopped with Ctrl+C.
"""

import os
import sys
import time
import tempfile

PATH = os.path.join(tempfile.gettempdir(), "pipe_queue_example.fifo")


def run_producer():
    from pipe_queue import create, remove_pipe

    remove_pipe(PATH)  # left over from an earlier run
    print("Starting producer on:", PATH)
    try:
        with create(PATH) as queue:
            seq = 0
            while True:
                msg = {
                    "seq": seq,
                    "timestamp": time.time(),
                    "position": {"x": seq * 0.1, "y": 0.0, "z": 0.5},
                }
                queue.send_obj(msg)
                print(f"  Sent #{seq}: {msg['position']}")
                seq += 1
                time.sleep(0.1)  # 10 Hz
    except KeyboardInterrupt:
        pass
    finally:
        remove_pipe(PATH)


def run_consumer():
    from pipe_queue import open_reader, PipeNotFoundError, PipeProtocolError

    print("Connecting consumer to:", PATH)
    try:
        reader = open_reader(PATH, poll_interval=0.001)
    except PipeNotFoundError:
        print("  No queue yet. Start the producer first.")
        sys.exit(1)

    with reader:
        try:
            while True:
                msg = reader.receive_obj()
                print(f"  Received #{msg['seq']}: {msg['position']}")
        except PipeProtocolError:
            print("  Producer went away.")
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    if len(sys.argv) < 2 or sys.argv[1] not in ("producer", "consumer"):
        print(__doc__)
        sys.exit(1)

    if sys.argv[1] == "producer":
        run_producer()
    else:
        run_consumer()
