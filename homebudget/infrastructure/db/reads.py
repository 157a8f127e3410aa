"""
Fan-out / fan-in for independent reads.

Each reader is a callable taking a Session and returning plain rows. With a
session factory the readers run concurrently, each on its own session (a
Session is not thread-safe); without one they run on the caller's session.
Results come back in reader order either way.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Sequence

from sqlalchemy.orm import Session, sessionmaker

Reader = Callable[[Session], Any]


def run_reads(
    db: Session,
    readers: Sequence[Reader],
    session_factory: sessionmaker | None = None,
    max_workers: int = 3,
) -> list[Any]:
    if session_factory is None or len(readers) < 2:
        return [reader(db) for reader in readers]

    def _run(reader: Reader):
        session = session_factory()
        try:
            return reader(session)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=min(max_workers, len(readers))) as pool:
        futures = [pool.submit(_run, reader) for reader in readers]
        return [future.result() for future in futures]
